# src/pipeline/processor.py — v1
"""MediaProcessor — single-asset pipeline.

Stages run strictly in order for one asset:
  intake → checksum → extraction → validation → derivatives (raster only)

The processor is synchronous and CPU-bound; BatchCoordinator runs it on
worker threads. Every stage failure is captured on the returned
ProcessingJob, nothing escapes ``process``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from listingmedia.core.errors import UndecodableImageError
from listingmedia.core.formats import is_raster_image
from listingmedia.core.models import (
    AssetMetadata,
    MediaAsset,
    ProcessingJob,
    StageFailure,
    TargetSpec,
)
from listingmedia.extraction.metadata_extractor import MetadataExtractor
from listingmedia.imaging.derivatives import DerivativeGenerator
from listingmedia.imaging.responsive import ResponsiveSetBuilder
from listingmedia.integrity.checksum import ChecksumService
from listingmedia.logging.context import get_context, set_job_context, set_stage
from listingmedia.policy.registry import PolicyRegistry, default_registry, load_registry
from listingmedia.validation.validator import Validator

if TYPE_CHECKING:
    from listingmedia.config.settings import Settings

logger = logging.getLogger(__name__)


class MediaProcessor:
    """Run one MediaAsset through the processing stages.

    Args:
        registry: Policy table; the built-in defaults when omitted.
        checksum: Digest service (sha256 by default).
        extractor: Metadata extractor.
        generator: Derivative generator for raster images.
        responsive_builder: When set together with ``responsive_base_width``,
            raster jobs also get a ResponsiveSet.
        responsive_base_width: Base display width for responsive candidates.
    """

    def __init__(
        self,
        registry: PolicyRegistry | None = None,
        checksum: ChecksumService | None = None,
        extractor: MetadataExtractor | None = None,
        generator: DerivativeGenerator | None = None,
        responsive_builder: ResponsiveSetBuilder | None = None,
        responsive_base_width: int | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.checksum = checksum or ChecksumService()
        self.extractor = extractor or MetadataExtractor()
        self.validator = Validator()
        self.generator = generator or DerivativeGenerator()
        self.responsive_builder = responsive_builder
        self.responsive_base_width = responsive_base_width

    @classmethod
    def from_settings(cls, settings: Settings) -> MediaProcessor:
        generator = DerivativeGenerator(fallback_format=settings.fallback_format)
        builder = ResponsiveSetBuilder(generator) if settings.responsive_enabled else None
        return cls(
            registry=load_registry(settings),
            checksum=ChecksumService(settings.checksum_algorithm),
            extractor=MetadataExtractor(pdf_scan_window=settings.pdf_scan_window_bytes),
            generator=generator,
            responsive_builder=builder,
            responsive_base_width=settings.responsive_base_width if builder else None,
        )

    def new_job(self, asset: MediaAsset) -> ProcessingJob:
        return ProcessingJob(asset=asset, policy_tag=self.registry.resolve_tag(asset.media_type))

    def process(
        self,
        asset: MediaAsset,
        specs: Sequence[TargetSpec] | None = None,
        job: ProcessingJob | None = None,
    ) -> ProcessingJob:
        """Process one asset and return its job in a terminal state.

        Args:
            asset: Raw asset to process.
            specs: Derivative specs; the property image set when omitted.
            job: Pre-created job (the batch creates jobs up front so that
                a timed-out item still has an identity).
        """
        job = job or self.new_job(asset)
        set_job_context(job.job_id, asset.asset_id)
        start = time.monotonic()

        try:
            self._run(job, specs)
        except Exception as e:
            stage = get_context().stage or "intake"
            logger.exception("Unexpected error in stage %s for %s", stage, asset.filename)
            job.fail(StageFailure(
                stage=stage, kind="unrecoverable", message=f"{type(e).__name__}: {e}",
            ))
        finally:
            set_stage(None)

        logger.info(
            "Processed %s (%s): status=%s, %d variants, %d warnings, %.0fms",
            asset.filename,
            job.policy_tag,
            job.status,
            len(job.variants),
            len(job.warnings),
            (time.monotonic() - start) * 1000,
        )
        return job

    def _run(self, job: ProcessingJob, specs: Sequence[TargetSpec] | None) -> None:
        asset = job.asset

        set_stage("intake")
        if not asset.content:
            job.metadata = AssetMetadata(size_bytes=0, checksum=self.checksum.digest(b""))
            job.fail(StageFailure(
                stage="intake", kind="unrecoverable", message="Asset has no content",
            ))
            return

        set_stage("checksum")
        checksum = self.checksum.digest(asset.content)

        set_stage("extraction")
        metadata = self.extractor.extract(asset.content, asset.mime_type)
        metadata.checksum = checksum
        job.metadata = metadata

        set_stage("validation")
        policy = self.registry.resolve(asset.media_type)
        result = self.validator.validate(asset, metadata, policy)
        job.validation = result
        job.warnings.extend(result.warnings)
        if not result.valid:
            logger.info("Rejected %s: %s", asset.filename, "; ".join(result.errors))
            job.fail(StageFailure(
                stage="validation", kind="validation", message="; ".join(result.errors),
            ))
            return

        if not is_raster_image(asset.mime_type):
            job.status = "processed"
            return

        for degradation in metadata.degradations:
            job.warnings.append(f"Metadata incomplete: {degradation}")

        set_stage("derivatives")
        try:
            derivatives = self.generator.generate(asset, specs)
        except UndecodableImageError as e:
            logger.warning("Cannot generate derivatives for %s: %s", asset.filename, e)
            job.fail(StageFailure(stage="derivatives", kind="derivative", message=str(e)))
            return

        job.variants = derivatives.variants
        job.derivative_failures = derivatives.failures
        job.warnings.extend(derivatives.warnings)

        if derivatives.failures and not derivatives.variants:
            job.fail(StageFailure(
                stage="derivatives",
                kind="derivative",
                message="No variant could be generated",
            ))
            return

        if self.responsive_builder is not None and self.responsive_base_width:
            job.responsive = self.responsive_builder.build_srcset(
                asset, self.responsive_base_width,
            )

        job.status = "processed"

