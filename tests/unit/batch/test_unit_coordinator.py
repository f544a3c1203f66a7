# tests/unit/batch/test_unit_coordinator.py — v2
"""Tests for batch/coordinator.py — concurrency, progress, timeout, cancellation."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from listingmedia.batch.coordinator import BatchCoordinator
from listingmedia.batch.models import BatchProgress
from listingmedia.config.settings import Settings
from listingmedia.core.models import TargetSpec
from listingmedia.pipeline.processor import MediaProcessor

SMALL_SPECS = [TargetSpec(name="thumb", max_width=32, format="jpeg")]


class SlowProcessor(MediaProcessor):
    """Sleeps before processing assets whose filename starts with ``slow``."""

    def __init__(self, delay: float = 0.5) -> None:
        super().__init__()
        self.delay = delay
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def process(self, asset, specs=None, job=None):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if asset.filename.startswith("slow"):
                time.sleep(self.delay)
            else:
                time.sleep(0.02)
            return super().process(asset, specs, job)
        finally:
            with self._lock:
                self.active -= 1


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestProcessBatch:
    @pytest.mark.asyncio
    async def test_one_corrupt_item(self, make_asset, corrupt_jpeg):
        assets = [make_asset(filename=f"p{i}.jpg") for i in range(4)]
        assets.insert(2, make_asset(content=corrupt_jpeg, filename="bad.jpg"))
        seen: list[BatchProgress] = []

        result = await BatchCoordinator().process_batch(assets, seen.append, specs=SMALL_SPECS)

        assert len(result.successes) == 4
        assert [f.filename for f in result.failures] == ["bad.jpg"]
        assert [p.completed for p in seen] == [1, 2, 3, 4, 5]
        assert all(p.total == 5 for p in seen)
        assert seen[-1].percentage == 100.0

    @pytest.mark.asyncio
    async def test_jobs_keep_input_order(self, make_asset):
        assets = [make_asset(filename="slow.jpg"), make_asset(filename="fast.jpg")]
        coordinator = BatchCoordinator(processor=SlowProcessor(delay=0.2))
        result = await coordinator.process_batch(assets, specs=SMALL_SPECS)
        assert [j.asset.filename for j in result.jobs] == ["slow.jpg", "fast.jpg"]

    @pytest.mark.asyncio
    async def test_concurrency_bound(self, make_asset):
        processor = SlowProcessor(delay=0.1)
        assets = [make_asset(filename=f"slow{i}.jpg") for i in range(6)]
        await BatchCoordinator(processor=processor, max_concurrency=2).process_batch(
            assets, specs=SMALL_SPECS,
        )
        assert processor.peak <= 2

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        result = await BatchCoordinator().process_batch([])
        assert result.total == 0
        assert result.summary()["succeeded"] == 0

    @pytest.mark.asyncio
    async def test_callback_error_does_not_abort(self, make_asset):
        def explode(progress: BatchProgress) -> None:
            raise RuntimeError("ui gone")

        result = await BatchCoordinator().process_batch(
            [make_asset(), make_asset()], explode, specs=SMALL_SPECS,
        )
        assert len(result.successes) == 2

    @pytest.mark.asyncio
    async def test_duplicates_flagged(self, make_asset, image_bytes):
        content = image_bytes(500, 400)
        assets = [make_asset(content=content, filename="a.jpg"), make_asset(content=content, filename="b.jpg")]
        result = await BatchCoordinator().process_batch(assets, specs=SMALL_SPECS)
        assert result.jobs[0].duplicate_of is None
        assert result.jobs[1].duplicate_of == assets[0].asset_id
        assert result.jobs[1].succeeded

    @pytest.mark.asyncio
    async def test_duplicate_flagging_disabled(self, make_asset):
        content = make_asset().content
        assets = [make_asset(content=content), make_asset(content=content)]
        result = await BatchCoordinator(flag_duplicates=False).process_batch(assets, specs=SMALL_SPECS)
        assert result.duplicates == []


class TestTimeout:
    @pytest.mark.asyncio
    async def test_timed_out_item_is_retryable(self, make_asset):
        assets = [make_asset(filename="slow.jpg"), make_asset(filename="fast.jpg")]
        seen: list[int] = []
        coordinator = BatchCoordinator(processor=SlowProcessor(delay=1.0))

        result = await coordinator.process_batch(
            assets, lambda p: seen.append(p.completed), specs=SMALL_SPECS, item_timeout=0.3,
        )

        slow, fast = result.jobs
        assert slow.status == "failed"
        assert slow.failure.kind == "timeout"
        assert slow.failure.retryable
        assert "exceeded" in slow.failure.message
        assert fast.succeeded
        assert seen == [1, 2]
        assert [a.filename for a in result.retry_assets()] == ["slow.jpg"]

    @pytest.mark.asyncio
    async def test_timed_out_items_hold_their_slot(self, make_asset):
        processor = SlowProcessor(delay=0.5)
        assets = [
            make_asset(filename="slow1.jpg"),
            make_asset(filename="slow2.jpg"),
            make_asset(filename="fast1.jpg"),
            make_asset(filename="fast2.jpg"),
        ]
        seen: list[str] = []
        coordinator = BatchCoordinator(processor=processor, max_concurrency=2)

        result = await coordinator.process_batch(
            assets, lambda p: seen.append(p.current_item), specs=SMALL_SPECS, item_timeout=0.1,
        )

        assert processor.peak <= 2
        assert [j.status for j in result.jobs] == ["failed", "failed", "processed", "processed"]
        assert sorted(seen[:2]) == ["slow1.jpg", "slow2.jpg"]


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, make_asset):
        cancel = asyncio.Event()
        cancel.set()
        seen: list[BatchProgress] = []
        result = await BatchCoordinator().process_batch(
            [make_asset(), make_asset()], seen.append, cancel_event=cancel,
        )
        assert all(j.status == "cancelled" for j in result.jobs)
        assert len(result.cancelled) == 2
        assert result.failures == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_cancel_mid_batch(self, make_asset):
        cancel = asyncio.Event()

        def stop_after_first(progress: BatchProgress) -> None:
            cancel.set()

        assets = [make_asset(filename=f"p{i}.jpg") for i in range(4)]
        result = await BatchCoordinator(max_concurrency=1).process_batch(
            assets, stop_after_first, specs=SMALL_SPECS, cancel_event=cancel,
        )
        assert result.jobs[0].succeeded
        assert [j.status for j in result.jobs[1:]] == ["cancelled"] * 3


class TestConstruction:
    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError, match="max_concurrency"):
            BatchCoordinator(max_concurrency=0)

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            batch_max_concurrency=8,
            batch_item_timeout_seconds=30,
            batch_flag_duplicates=False,
        )
        coordinator = BatchCoordinator.from_settings(settings)
        assert coordinator.max_concurrency == 8
        assert coordinator.item_timeout == 30
        assert coordinator.flag_duplicates is False
