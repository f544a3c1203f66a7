# src/api/facade.py — v3
"""Public API facade — single entry point for media ingestion.

Usage:
    from listingmedia.api.facade import ingest
    result = await ingest(inputs, owner_id="agent-42", context_id="listing-7")

Each call composes the pipeline from Settings (loaded from .env when not
given). Callers that process many batches should build the components
once and use BatchCoordinator / UploadCoordinator directly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from listingmedia.api.models import AssetInput, IngestResult
from listingmedia.batch.coordinator import BatchCoordinator, ProgressCallback
from listingmedia.batch.models import BatchResult
from listingmedia.config.settings import Settings
from listingmedia.core.models import (
    AssetMetadata,
    MediaAsset,
    ProcessingJob,
    TargetSpec,
    ValidationResult,
)
from listingmedia.pipeline.processor import MediaProcessor
from listingmedia.storage import layout
from listingmedia.storage.storage_factory import create_storage
from listingmedia.upload.coordinator import UploadCoordinator

if TYPE_CHECKING:
    from listingmedia.storage.base_storage import BaseStorageClient

logger = logging.getLogger(__name__)


def _as_assets(inputs: Iterable[AssetInput | MediaAsset]) -> list[MediaAsset]:
    return [i if isinstance(i, MediaAsset) else i.to_asset() for i in inputs]


def validate_file(
    path: Path,
    media_type: str,
    settings: Settings | None = None,
) -> tuple[AssetMetadata, ValidationResult]:
    """Extract metadata and validate one file without generating variants."""
    settings = settings or Settings()
    processor = MediaProcessor.from_settings(settings)
    asset = AssetInput(content=path, media_type=media_type).to_asset()

    metadata = processor.extractor.extract(asset.content, asset.mime_type)
    metadata.checksum = processor.checksum.digest(asset.content)
    policy = processor.registry.resolve(media_type)
    return metadata, processor.validator.validate(asset, metadata, policy)


async def process_file(
    path: Path,
    media_type: str,
    settings: Settings | None = None,
    specs: Sequence[TargetSpec] | None = None,
) -> ProcessingJob:
    """Run one file through the pipeline (no upload)."""
    settings = settings or Settings()
    processor = MediaProcessor.from_settings(settings)
    asset = AssetInput(content=path, media_type=media_type).to_asset()
    return await asyncio.to_thread(processor.process, asset, specs)


async def process_assets(
    inputs: Iterable[AssetInput | MediaAsset],
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
    specs: Sequence[TargetSpec] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BatchResult:
    """Process a batch of assets (no upload)."""
    settings = settings or Settings()
    coordinator = BatchCoordinator.from_settings(settings)
    return await coordinator.process_batch(
        _as_assets(inputs), on_progress, specs=specs, cancel_event=cancel_event,
    )


async def ingest(
    inputs: Iterable[AssetInput | MediaAsset],
    owner_id: str,
    context_id: str | None = None,
    settings: Settings | None = None,
    storage: BaseStorageClient | None = None,
    on_progress: ProgressCallback | None = None,
    skip_duplicates: bool = True,
) -> IngestResult:
    """Process a batch and upload every processed job.

    Args:
        inputs: Files or assets to ingest.
        owner_id: Uploading user; first key segment after the prefix.
        context_id: Listing / property the media belongs to (None = general).
        settings: Global settings. Loaded from .env if None.
        storage: Storage backend. Built from settings if None.
        on_progress: Batch progress callback (processing phase).
        skip_duplicates: Do not upload jobs flagged as duplicates.

    Returns:
        IngestResult; jobs end ``uploaded``, ``upload_failed``,
        ``rejected``, ``failed`` or ``cancelled``.

    Raises:
        ValueError: If ``owner_id`` or ``context_id`` cannot be used as a
            storage key segment. Checked before any asset is processed.
    """
    settings = settings or Settings()
    layout.safe_segment(owner_id)
    if context_id:
        layout.safe_segment(context_id)
    processor = MediaProcessor.from_settings(settings)
    coordinator = BatchCoordinator.from_settings(settings, processor=processor)
    uploader = UploadCoordinator.from_settings(settings, registry=processor.registry)
    storage = storage or create_storage(settings)

    batch = await coordinator.process_batch(_as_assets(inputs), on_progress)
    await uploader.upload_jobs(
        batch.jobs, storage, owner_id, context_id=context_id, skip_duplicates=skip_duplicates,
    )

    result = IngestResult(batch=batch, owner_id=owner_id, context_id=context_id)
    logger.info(
        "Ingest complete: %d uploaded, %d failed, %d duplicates skipped",
        len(result.uploaded), len(result.failures), len(result.skipped_duplicates),
    )
    return result
