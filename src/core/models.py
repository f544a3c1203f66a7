# src/core/models.py — v1
"""Shared Pydantic domain models used across pipeline stages.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

import base64
import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from listingmedia.core.formats import OUTPUT_FORMATS

OutputFormat = Literal["webp", "avif", "jpeg", "png"]


def _new_id() -> str:
    return uuid.uuid4().hex


# === INPUT ===


class MediaAsset(BaseModel):
    """Raw uploaded file as received at ingestion. Never mutated."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(repr=False)
    media_type: str
    filename: str
    mime_type: str
    asset_id: str = Field(default_factory=_new_id)

    @property
    def size_bytes(self) -> int:
        return len(self.content)


# === METADATA ===


class AssetMetadata(BaseModel):
    """Structural metadata recovered from raw bytes (best effort)."""

    size_bytes: int
    checksum: str = ""

    # --- Raster images ---
    width: int | None = None
    height: int | None = None
    aspect_ratio: float | None = None
    image_format: str | None = None

    # --- Documents ---
    page_count: int | None = None
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: list[str] = Field(default_factory=list)
    is_encrypted: bool | None = None
    has_password: bool | None = None

    # Extraction steps that failed and were skipped
    degradations: list[str] = Field(default_factory=list)

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None and self.height is not None


# === POLICY & VALIDATION ===


class ValidationPolicy(BaseModel):
    """Per-media-type acceptance and security-handling rules."""

    model_config = ConfigDict(frozen=True)

    allowed_formats: frozenset[str]
    max_size_bytes: int
    min_width: int | None = None
    min_height: int | None = None
    max_width: int | None = None
    max_height: int | None = None
    requires_verification: bool = False
    encryption_enabled: bool = False
    watermark_enabled: bool = False


class ValidationResult(BaseModel):
    """Outcome of applying a policy to an asset.

    Errors block the asset; warnings are advisory and never affect validity.
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return not self.errors


# === DERIVATIVES ===


class TargetSpec(BaseModel):
    """Bounding box, quality and encoding for one derivative."""

    model_config = ConfigDict(frozen=True)

    name: str
    max_width: int = Field(gt=0)
    max_height: int | None = Field(default=None, gt=0)
    quality: int = Field(default=85, ge=0, le=100)
    format: OutputFormat = "webp"
    blur_radius: float = Field(default=0.0, ge=0.0)


class MediaVariant(BaseModel):
    """A resized / re-encoded derivative of a source image."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes = Field(repr=False)
    width: int
    height: int
    format: OutputFormat
    requested_format: OutputFormat
    quality: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def mime_type(self) -> str:
        return OUTPUT_FORMATS[self.format][1]

    @property
    def fell_back(self) -> bool:
        """True when the requested encoder was unavailable."""
        return self.format != self.requested_format

    def data_uri(self) -> str:
        """Inline ``data:`` URI, used for blur placeholders."""
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class DerivativeFailure(BaseModel):
    """A variant that could not be produced."""

    name: str
    reason: str


class DerivativeSet(BaseModel):
    """All variants generated for one asset, plus isolated failures."""

    variants: list[MediaVariant] = Field(default_factory=list)
    failures: list[DerivativeFailure] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def get(self, name: str) -> MediaVariant | None:
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None


# === RESPONSIVE DELIVERY ===


class ResponsiveCandidate(BaseModel):
    """One width of a responsive image set."""

    width: int
    target_width: int
    content: bytes = Field(repr=False)
    format: OutputFormat


class ResponsiveSet(BaseModel):
    """Width-keyed candidates plus the matching ``sizes`` description."""

    candidates: list[ResponsiveCandidate] = Field(default_factory=list)
    sizes_attr: str = ""

    @property
    def widths(self) -> list[int]:
        return [c.width for c in self.candidates]

    def srcset(self, urls_by_width: dict[int, str]) -> str:
        """Render a ``srcset`` string once candidate URLs are known.

        Candidates without a URL are left out.
        """
        items = [
            f"{urls_by_width[c.width]} {c.width}w"
            for c in self.candidates
            if c.width in urls_by_width
        ]
        return ", ".join(items)


# === JOB ===


class StageFailure(BaseModel):
    """Why a job did not complete, and whether retrying can help."""

    stage: Literal[
        "intake", "checksum", "extraction", "validation", "derivatives", "upload",
    ]
    kind: Literal[
        "validation", "derivative", "upload", "timeout", "unrecoverable", "cancelled",
    ]
    message: str
    retryable: bool = False


class StoredAsset(BaseModel):
    """What the storage collaborator returns after a durable write."""

    url: str
    storage_id: str
    variant_urls: dict[str, str] = Field(default_factory=dict)


JobStatus = Literal[
    "pending", "rejected", "processed", "failed", "cancelled", "uploaded", "upload_failed",
]


class ProcessingJob(BaseModel):
    """Unit of work for one asset, from intake to upload.

    Owned by exactly one worker while it is being processed.
    """

    job_id: str = Field(default_factory=_new_id)
    asset: MediaAsset
    policy_tag: str = "other"
    status: JobStatus = "pending"

    metadata: AssetMetadata | None = None
    validation: ValidationResult | None = None
    variants: list[MediaVariant] = Field(default_factory=list)
    derivative_failures: list[DerivativeFailure] = Field(default_factory=list)
    responsive: ResponsiveSet | None = None

    warnings: list[str] = Field(default_factory=list)
    duplicate_of: str | None = None
    failure: StageFailure | None = None
    upload: StoredAsset | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in ("processed", "uploaded")

    @property
    def checksum(self) -> str:
        return self.metadata.checksum if self.metadata else ""

    def variant(self, name: str) -> MediaVariant | None:
        for v in self.variants:
            if v.name == name:
                return v
        return None

    def fail(self, failure: StageFailure) -> None:
        """Record a terminal failure on this job."""
        self.failure = failure
        if failure.kind == "validation":
            self.status = "rejected"
        elif failure.kind == "cancelled":
            self.status = "cancelled"
        elif failure.kind == "upload":
            self.status = "upload_failed"
        else:
            self.status = "failed"
