# src/storage/models.py — v2
"""Storage domain models: StoredManifest.

A manifest is written next to every stored asset so that its checksum,
handling directives and variant list survive without a database.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from listingmedia.upload.models import UploadDirectives, UploadRequest


class StoredVariantEntry(BaseModel):
    name: str
    key: str
    mime_type: str
    width: int
    height: int
    size_bytes: int


class StoredManifest(BaseModel):
    """Written to manifest.json beside the original."""

    asset_id: str
    object_key: str
    mime_type: str
    size_bytes: int
    checksum: str
    checksum_algorithm: str
    directives: UploadDirectives
    metadata: dict[str, str] = Field(default_factory=dict)
    variants: list[StoredVariantEntry] = Field(default_factory=list)
    stored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_request(cls, request: UploadRequest) -> StoredManifest:
        return cls(
            asset_id=request.asset_id,
            object_key=request.object_key,
            mime_type=request.mime_type,
            size_bytes=len(request.content),
            checksum=request.checksum,
            checksum_algorithm=request.checksum_algorithm,
            directives=request.directives,
            metadata=request.metadata,
            variants=[
                StoredVariantEntry(
                    name=v.name,
                    key=v.key,
                    mime_type=v.mime_type,
                    width=v.width,
                    height=v.height,
                    size_bytes=len(v.content),
                )
                for v in request.variants
            ],
        )
