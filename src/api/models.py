# src/api/models.py — v2
"""API-level models: AssetInput, IngestResult."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from listingmedia.batch.models import BatchFailure, BatchResult
from listingmedia.core.formats import guess_mime_type
from listingmedia.core.models import MediaAsset, ProcessingJob


class AssetInput(BaseModel):
    """Caller-side description of one file to ingest."""

    content: bytes | Path = Field(repr=False)
    media_type: str
    filename: str | None = None
    mime_type: str | None = None

    def to_asset(self) -> MediaAsset:
        """Resolve content and defaults into an immutable MediaAsset.

        Raises:
            ValueError: If content is raw bytes and no filename was given.
        """
        if isinstance(self.content, Path):
            data = self.content.read_bytes()
            filename = self.filename or self.content.name
        else:
            if not self.filename:
                raise ValueError("filename is required when content is bytes")
            data = self.content
            filename = self.filename
        return MediaAsset(
            content=data,
            media_type=self.media_type,
            filename=filename,
            mime_type=self.mime_type or guess_mime_type(filename),
        )


class IngestResult(BaseModel):
    """Return value of facade.ingest(): processing plus upload outcome."""

    batch: BatchResult
    owner_id: str
    context_id: str | None = None

    @property
    def jobs(self) -> list[ProcessingJob]:
        return self.batch.jobs

    @property
    def uploaded(self) -> list[ProcessingJob]:
        return [job for job in self.jobs if job.status == "uploaded"]

    @property
    def failures(self) -> list[BatchFailure]:
        return self.batch.failures

    @property
    def skipped_duplicates(self) -> list[ProcessingJob]:
        return [
            job for job in self.jobs
            if job.status == "processed" and job.duplicate_of is not None
        ]
