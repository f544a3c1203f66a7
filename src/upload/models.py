# src/upload/models.py — v1
"""Upload hand-off models: what the storage collaborator receives."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UploadDirectives(BaseModel):
    """Security handling the storage side must apply, taken from the policy."""

    model_config = ConfigDict(frozen=True)

    watermark_enabled: bool = False
    encryption_enabled: bool = False
    requires_verification: bool = False

    def as_metadata(self) -> dict[str, str]:
        return {
            "watermark": str(self.watermark_enabled).lower(),
            "encrypted": str(self.encryption_enabled).lower(),
            "requires-verification": str(self.requires_verification).lower(),
        }


class UploadVariant(BaseModel):
    """One derivative to store next to the original."""

    name: str
    key: str
    content: bytes = Field(repr=False)
    mime_type: str
    width: int
    height: int


class UploadRequest(BaseModel):
    """Everything needed for one durable write of an asset and its variants."""

    asset_id: str
    namespace: str
    object_key: str
    content: bytes = Field(repr=False)
    mime_type: str
    checksum: str
    checksum_algorithm: str = "sha256"
    variants: list[UploadVariant] = Field(default_factory=list)
    directives: UploadDirectives = Field(default_factory=UploadDirectives)
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def keys(self) -> list[str]:
        return [self.object_key, *(v.key for v in self.variants)]

    @property
    def total_bytes(self) -> int:
        return len(self.content) + sum(len(v.content) for v in self.variants)
