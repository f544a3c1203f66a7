# src/upload/coordinator.py — v1
"""UploadCoordinator — hand processed jobs to the storage collaborator.

Two steps: ``prepare_upload`` builds an UploadRequest (keys, directives,
descriptive metadata) from a processed job; ``upload`` sends it with
backoff retry and records the outcome on the job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from listingmedia.core.errors import UploadFailure
from listingmedia.core.formats import OUTPUT_FORMATS, extension_for_mime
from listingmedia.core.models import ProcessingJob, StageFailure
from listingmedia.integrity.checksum import DEFAULT_ALGORITHM
from listingmedia.policy.registry import PolicyRegistry, default_registry, load_registry
from listingmedia.storage import layout
from listingmedia.upload.models import UploadDirectives, UploadRequest, UploadVariant
from listingmedia.upload.retry import RetryConfig, with_retry

if TYPE_CHECKING:
    from listingmedia.config.settings import Settings
    from listingmedia.storage.base_storage import BaseStorageClient

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "media"


class UploadCoordinator:
    """Prepare and perform durable writes for processed jobs.

    Args:
        registry: Policy table the directives come from.
        prefix: Leading key segment(s) for every object.
        retry: Backoff policy for transient storage failures.
        checksum_algorithm: Recorded next to the checksum.
    """

    def __init__(
        self,
        registry: PolicyRegistry | None = None,
        prefix: str = DEFAULT_PREFIX,
        retry: RetryConfig | None = None,
        checksum_algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        self.registry = registry or default_registry()
        self.prefix = prefix
        self.retry = retry or RetryConfig()
        self.checksum_algorithm = checksum_algorithm

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: PolicyRegistry | None = None,
    ) -> UploadCoordinator:
        return cls(
            registry=registry or load_registry(settings),
            prefix=settings.storage_prefix,
            retry=RetryConfig(
                max_retries=settings.upload_max_retries,
                base_delay_s=settings.upload_retry_delay_seconds,
            ),
            checksum_algorithm=settings.checksum_algorithm,
        )

    def prepare_upload(
        self,
        job: ProcessingJob,
        owner_id: str,
        media_type_tag: str | None = None,
        context_id: str | None = None,
    ) -> UploadRequest:
        """Build the storage request for a processed job.

        Raises:
            ValueError: If the job is not ``processed`` or an id is unusable
                as a key segment.
        """
        if job.status != "processed":
            raise ValueError(
                f"Only processed jobs can be uploaded (job {job.job_id} is {job.status})"
            )

        asset = job.asset
        tag = self.registry.resolve_tag(media_type_tag or job.policy_tag)
        policy = self.registry.resolve(tag)
        namespace = layout.namespace(self.prefix, owner_id, tag, context_id)

        variants = [
            UploadVariant(
                name=variant.name,
                key=layout.variant_key(
                    namespace, asset.asset_id, variant.name, OUTPUT_FORMATS[variant.format][2],
                ),
                content=variant.content,
                mime_type=variant.mime_type,
                width=variant.width,
                height=variant.height,
            )
            for variant in job.variants
        ]

        return UploadRequest(
            asset_id=asset.asset_id,
            namespace=namespace,
            object_key=layout.original_key(
                namespace, asset.asset_id, extension_for_mime(asset.mime_type),
            ),
            content=asset.content,
            mime_type=asset.mime_type,
            checksum=job.checksum,
            checksum_algorithm=self.checksum_algorithm,
            variants=variants,
            directives=UploadDirectives(
                watermark_enabled=policy.watermark_enabled,
                encryption_enabled=policy.encryption_enabled,
                requires_verification=policy.requires_verification,
            ),
            metadata=_descriptive_metadata(job, owner_id, tag, context_id),
        )

    async def upload(
        self,
        job: ProcessingJob,
        request: UploadRequest,
        storage: BaseStorageClient,
    ) -> ProcessingJob:
        """Send ``request`` to storage and record the result on ``job``.

        An UploadFailure that survives the retries marks the job
        ``upload_failed`` with a retryable failure; it is not raised.
        """
        try:
            stored = await with_retry(
                storage.store, request, config=self.retry, label=f"Upload of {request.object_key}",
            )
        except UploadFailure as e:
            logger.warning("Upload failed for %s: %s", job.asset.filename, e)
            job.fail(StageFailure(stage="upload", kind="upload", message=str(e), retryable=True))
            return job

        job.upload = stored
        job.status = "uploaded"
        logger.info(
            "Uploaded %s to %s (%d variants)",
            job.asset.filename, stored.storage_id, len(stored.variant_urls),
        )
        return job

    async def upload_jobs(
        self,
        jobs: Iterable[ProcessingJob],
        storage: BaseStorageClient,
        owner_id: str,
        context_id: str | None = None,
        skip_duplicates: bool = True,
    ) -> list[ProcessingJob]:
        """Prepare and upload every processed job, one after another.

        Jobs in any other state, and duplicates when ``skip_duplicates``,
        are returned untouched.
        """
        results: list[ProcessingJob] = []
        for job in jobs:
            if job.status != "processed" or (skip_duplicates and job.duplicate_of):
                results.append(job)
                continue
            request = self.prepare_upload(job, owner_id, context_id=context_id)
            results.append(await self.upload(job, request, storage))
        return results


def _descriptive_metadata(
    job: ProcessingJob,
    owner_id: str,
    tag: str,
    context_id: str | None,
) -> dict[str, str]:
    metadata: dict[str, str] = {
        "original-filename": job.asset.filename,
        "media-type": tag,
        "owner-id": owner_id,
        "context-id": context_id or layout.GENERAL_CONTEXT,
        "size-bytes": str(job.asset.size_bytes),
    }
    meta = job.metadata
    if meta is not None:
        optional = {
            "width": meta.width,
            "height": meta.height,
            "page-count": meta.page_count,
            "title": meta.title,
            "author": meta.author,
            "subject": meta.subject,
        }
        metadata.update({k: str(v) for k, v in optional.items() if v is not None})
        if meta.keywords:
            metadata["keywords"] = ", ".join(meta.keywords)
        if meta.is_encrypted is not None:
            metadata["encrypted-source"] = str(meta.is_encrypted).lower()
    if job.duplicate_of:
        metadata["duplicate-of"] = job.duplicate_of
    return metadata
