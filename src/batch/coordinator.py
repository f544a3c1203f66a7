# src/batch/coordinator.py — v2
"""BatchCoordinator — run MediaProcessor over many assets.

Items are independent: each runs on a worker thread, at most
``max_concurrency`` at a time. Completions funnel through a single
progress update point, so callbacks see ``completed`` go 1, 2, ... N
even when items finish out of order. A timed-out item is reported at once
but keeps its slot until its worker thread returns.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from listingmedia.batch.dedup import BatchDeduplicator
from listingmedia.batch.models import BatchProgress, BatchResult
from listingmedia.core.models import MediaAsset, ProcessingJob, StageFailure, TargetSpec
from listingmedia.logging.context import set_batch_context
from listingmedia.pipeline.processor import MediaProcessor

if TYPE_CHECKING:
    from listingmedia.config.settings import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], None]

DEFAULT_MAX_CONCURRENCY = 4


class _ProgressTracker:
    """Single writer for BatchProgress."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self._progress = BatchProgress(total=total)
        self._callback = callback
        self._lock = asyncio.Lock()

    async def advance(self, job: ProcessingJob) -> None:
        async with self._lock:
            self._progress = BatchProgress(
                completed=self._progress.completed + 1,
                total=self._progress.total,
                current_item=job.asset.filename,
            )
            if self._callback is None:
                return
            try:
                self._callback(self._progress)
            except Exception:
                logger.warning("Progress callback raised, continuing batch", exc_info=True)


class BatchCoordinator:
    """Drive the per-asset pipeline across a batch with bounded concurrency.

    Args:
        processor: Per-asset pipeline. Defaults to built-in policies.
        max_concurrency: Max items processed at the same time.
        item_timeout: Default per-item timeout in seconds (None = no limit).
        flag_duplicates: Mark checksum collisions with ``duplicate_of``.
        known_checksums: checksum -> asset_id of content stored earlier.
    """

    def __init__(
        self,
        processor: MediaProcessor | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        item_timeout: float | None = None,
        flag_duplicates: bool = True,
        known_checksums: Mapping[str, str] | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.processor = processor or MediaProcessor()
        self.max_concurrency = max_concurrency
        self.item_timeout = item_timeout
        self.flag_duplicates = flag_duplicates
        self.known_checksums = dict(known_checksums or {})

    @classmethod
    def from_settings(
        cls, settings: Settings, processor: MediaProcessor | None = None,
    ) -> BatchCoordinator:
        return cls(
            processor=processor or MediaProcessor.from_settings(settings),
            max_concurrency=settings.batch_max_concurrency,
            item_timeout=settings.batch_item_timeout_seconds,
            flag_duplicates=settings.batch_flag_duplicates,
        )

    async def process_batch(
        self,
        assets: Iterable[MediaAsset],
        on_progress: ProgressCallback | None = None,
        *,
        specs: Sequence[TargetSpec] | None = None,
        cancel_event: asyncio.Event | None = None,
        item_timeout: float | None = None,
    ) -> BatchResult:
        """Process every asset; one item's failure never aborts the others.

        Args:
            assets: Assets to process.
            on_progress: Called once per finished item (not for items
                skipped by cancellation).
            specs: Derivative specs for raster items (property set by default).
            cancel_event: When set, items that have not started are
                marked cancelled. Items already running finish.
            item_timeout: Per-item timeout override in seconds.

        Returns:
            BatchResult with jobs in input order.
        """
        batch_id = uuid.uuid4().hex
        set_batch_context(batch_id)
        timeout = item_timeout if item_timeout is not None else self.item_timeout

        jobs = [self.processor.new_job(asset) for asset in assets]
        tracker = _ProgressTracker(len(jobs), on_progress)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        start = time.monotonic()

        logger.info(
            "Batch %s started: %d items, concurrency=%d, timeout=%s",
            batch_id, len(jobs), self.max_concurrency, timeout,
        )

        async def run_one(index: int) -> None:
            await semaphore.acquire()
            if cancel_event is not None and cancel_event.is_set():
                semaphore.release()
                jobs[index].fail(StageFailure(
                    stage="intake",
                    kind="cancelled",
                    message="Batch cancelled before this item started",
                    retryable=True,
                ))
                return
            jobs[index] = await self._run_item(jobs[index], specs, timeout, semaphore.release)
            await tracker.advance(jobs[index])

        try:
            await asyncio.gather(*(run_one(i) for i in range(len(jobs))))
        finally:
            set_batch_context(None)

        if self.flag_duplicates:
            BatchDeduplicator(self.known_checksums).mark_duplicates(jobs)

        result = BatchResult(
            batch_id=batch_id,
            jobs=jobs,
            duration_seconds=time.monotonic() - start,
        )
        logger.info("Batch %s complete: %s", batch_id, result.summary())
        return result

    async def _run_item(
        self,
        job: ProcessingJob,
        specs: Sequence[TargetSpec] | None,
        timeout: float | None,
        release: Callable[[], None],
    ) -> ProcessingJob:
        # The worker thread owns its own copy; a timed-out thread may keep
        # writing to it after this coroutine has given up. Its slot is held
        # until the thread returns, timed out or not.
        worker_job = job.model_copy(deep=True)
        work = asyncio.ensure_future(
            asyncio.to_thread(self.processor.process, job.asset, specs, worker_job),
        )
        work.add_done_callback(lambda task: _release_slot(task, release))
        try:
            if timeout is None:
                return await work
            return await asyncio.wait_for(asyncio.shield(work), timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Item %s timed out after %.1fs, continuing batch", job.asset.filename, timeout,
            )
            job.fail(StageFailure(
                stage=_stage_reached(worker_job),
                kind="timeout",
                message=f"Processing exceeded {timeout}s",
                retryable=True,
            ))
            return job
        except Exception as e:
            logger.exception("Worker failed for %s", job.asset.filename)
            job.fail(StageFailure(
                stage=_stage_reached(worker_job),
                kind="unrecoverable",
                message=f"{type(e).__name__}: {e}",
            ))
            return job


def _stage_reached(job: ProcessingJob) -> str:
    if job.metadata is None:
        return "extraction"
    if job.validation is None:
        return "validation"
    return "derivatives"


def _release_slot(task: asyncio.Future, release: Callable[[], None]) -> None:
    release()
    # Retrieve the outcome of abandoned workers so it is not reported as unhandled.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Worker finished with %r", task.exception())
