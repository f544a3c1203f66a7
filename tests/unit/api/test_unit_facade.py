# tests/unit/api/test_unit_facade.py — v3
"""Tests for api/facade.py — public entry points, local storage only."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from listingmedia.api.facade import ingest, process_assets, process_file, validate_file
from listingmedia.api.models import AssetInput
from listingmedia.batch.coordinator import BatchCoordinator
from listingmedia.config.settings import Settings
from listingmedia.core.errors import UploadFailure
from listingmedia.core.models import TargetSpec
from listingmedia.storage.local_storage import LocalStorage

SPECS = [TargetSpec(name="thumbnail", max_width=150, max_height=100, format="jpeg")]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, storage_root=tmp_path / "store", upload_retry_delay_seconds=0.001)


# ---------------------------------------------------------------------------
# validate_file / process_file
# ---------------------------------------------------------------------------

class TestValidateFile:
    def test_valid_photo(self, tmp_path, image_bytes, settings):
        path = tmp_path / "front.jpg"
        path.write_bytes(image_bytes(1024, 768))
        metadata, result = validate_file(path, "property_photo", settings)
        assert result.valid
        assert (metadata.width, metadata.height) == (1024, 768)
        assert len(metadata.checksum) == 64

    def test_too_small(self, tmp_path, image_bytes, settings):
        path = tmp_path / "small.jpg"
        path.write_bytes(image_bytes(300, 200))
        _, result = validate_file(path, "property_photo", settings)
        assert not result.valid


class TestProcessFile:
    @pytest.mark.asyncio
    async def test_process(self, tmp_path, image_bytes, settings):
        path = tmp_path / "front.jpg"
        path.write_bytes(image_bytes(1200, 900))
        job = await process_file(path, "property_photo", settings, specs=SPECS)
        assert job.status == "processed"
        assert job.variant("thumbnail").width == 133


# ---------------------------------------------------------------------------
# process_assets / ingest
# ---------------------------------------------------------------------------

class TestProcessAssets:
    @pytest.mark.asyncio
    async def test_mixed_inputs(self, make_asset, minimal_pdf, settings):
        inputs = [
            make_asset(),
            AssetInput(content=minimal_pdf, media_type="deed", filename="deed.pdf"),
        ]
        result = await process_assets(inputs, settings, specs=SPECS)
        assert len(result.successes) == 2
        assert result.jobs[1].policy_tag == "deed"


class TestIngest:
    @pytest.mark.asyncio
    async def test_ingest_local(self, make_asset, image_bytes, settings):
        photo = make_asset(filename="front.jpg")
        bad = make_asset(content=image_bytes(100, 80), filename="tiny.jpg")
        progress: list[int] = []

        result = await ingest(
            [photo, bad], "agent-42", context_id="listing-7",
            settings=settings, on_progress=lambda p: progress.append(p.completed),
        )

        assert [j.status for j in result.jobs] == ["uploaded", "rejected"]
        assert progress == [1, 2]
        stored = settings.storage_root / "media/agent-42/listing-7/property_photo" / photo.asset_id
        assert (stored / "original.jpg").read_bytes() == photo.content
        assert (stored / "manifest.json").is_file()
        assert (stored / "hero.webp").is_file() or (stored / "hero.jpg").is_file()

    @pytest.mark.asyncio
    async def test_duplicates_not_uploaded(self, make_asset, settings, tmp_path):
        content = make_asset().content
        storage = LocalStorage(tmp_path / "dedup")
        result = await ingest(
            [make_asset(content=content), make_asset(content=content)],
            "o", settings=settings, storage=storage,
        )
        assert len(result.uploaded) == 1
        assert len(result.skipped_duplicates) == 1

    @pytest.mark.asyncio
    async def test_upload_failure_recorded(self, make_asset, settings):
        storage = AsyncMock()
        storage.store.side_effect = UploadFailure("bucket gone", transient=False)
        result = await ingest([make_asset()], "o", settings=settings, storage=storage)
        assert result.jobs[0].status == "upload_failed"
        assert result.failures[0].kind == "upload"
        assert result.batch.retry_assets() == [result.jobs[0].asset]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("owner_id", "context_id"), [("..", None), ("agent", "/"), ("", "listing-7")])
    async def test_unusable_ids_rejected_before_processing(self, make_asset, settings, owner_id, context_id):
        storage = AsyncMock()
        with patch.object(BatchCoordinator, "process_batch", new_callable=AsyncMock) as process_batch:
            with pytest.raises(ValueError, match="storage key segment"):
                await ingest(
                    [make_asset()], owner_id, context_id=context_id, settings=settings, storage=storage,
                )
        process_batch.assert_not_awaited()
        storage.store.assert_not_called()
