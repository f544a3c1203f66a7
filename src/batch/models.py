# src/batch/models.py — v2
"""Batch processing models: BatchProgress, BatchFailure, BatchResult."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from listingmedia.core.models import MediaAsset, ProcessingJob

# Job states a retry can change the outcome of.
RETRYABLE_STATUSES = frozenset({"failed", "cancelled", "upload_failed"})


class BatchProgress(BaseModel):
    """Snapshot handed to progress callbacks. Written by one coordinator only."""

    completed: int = 0
    total: int = 0
    current_item: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.completed / self.total * 100, 1)


class BatchFailure(BaseModel):
    """One item that did not produce a processed job."""

    asset_id: str
    filename: str
    kind: str
    reason: str
    retryable: bool = False


class BatchResult(BaseModel):
    """Outcome of a batch run. ``jobs`` keeps the input order."""

    batch_id: str
    jobs: list[ProcessingJob] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def successes(self) -> list[ProcessingJob]:
        return [job for job in self.jobs if job.succeeded]

    @property
    def failures(self) -> list[BatchFailure]:
        """Rejected and failed items with reasons (cancelled items excluded)."""
        return [
            BatchFailure(
                asset_id=job.asset.asset_id,
                filename=job.asset.filename,
                kind=job.failure.kind,
                reason=job.failure.message,
                retryable=job.failure.retryable,
            )
            for job in self.jobs
            if job.failure is not None and job.status != "cancelled"
        ]

    @property
    def cancelled(self) -> list[str]:
        return [job.asset.asset_id for job in self.jobs if job.status == "cancelled"]

    @property
    def duplicates(self) -> list[ProcessingJob]:
        return [job for job in self.jobs if job.duplicate_of is not None]

    def retry_assets(self) -> list[MediaAsset]:
        """Assets worth resubmitting: failed, timed out, cancelled or not uploaded.

        Rejected assets are left out; resubmitting the same bytes cannot
        change a policy verdict.
        """
        return [job.asset for job in self.jobs if job.status in RETRYABLE_STATUSES]

    def summary(self) -> dict[str, int | float]:
        return {
            "total": self.total,
            "succeeded": len(self.successes),
            "failed": len(self.failures),
            "cancelled": len(self.cancelled),
            "duplicates": len(self.duplicates),
            "duration_seconds": round(self.duration_seconds, 2),
        }
