# tests/integration/batch/test_int_batch_ingest.py — v1
"""Integration tests for batch processing and upload to local storage.

Covers: batch/*, upload/*, storage/local_storage.py, api/facade.py
No Docker required — uses filesystem.
"""

from __future__ import annotations

import json

import pytest

from listingmedia.api.facade import ingest
from listingmedia.batch.coordinator import BatchCoordinator
from listingmedia.batch.models import BatchProgress
from listingmedia.batch.scanner import BatchScanner
from listingmedia.config.settings import Settings


# =====================================================================
#  BATCH
# =====================================================================

class TestBatch:

    @pytest.mark.asyncio
    async def test_corrupt_item_isolated(self, make_asset, image_bytes, corrupt_jpeg):
        assets = [make_asset(content=image_bytes(640 + i * 10, 480), filename=f"p{i}.jpg") for i in range(5)]
        assets.append(make_asset(content=corrupt_jpeg, filename="broken.jpg"))
        seen: list[BatchProgress] = []

        result = await BatchCoordinator(max_concurrency=3).process_batch(assets, seen.append)

        assert len(result.successes) == len(assets) - 1
        assert [f.filename for f in result.failures] == ["broken.jpg"]
        assert len(seen) == len(assets)
        completed = [p.completed for p in seen]
        assert completed == sorted(completed) == list(range(1, len(assets) + 1))
        assert seen[-1].percentage == 100.0

    @pytest.mark.asyncio
    async def test_scan_directory(self, tmp_path, image_bytes, minimal_pdf):
        (tmp_path / "front.jpg").write_bytes(image_bytes(1024, 768))
        (tmp_path / "back.png").write_bytes(image_bytes(1024, 768, fmt="PNG"))
        (tmp_path / "deed.pdf").write_bytes(minimal_pdf)
        (tmp_path / "notes.txt").write_text("skip me", encoding="utf-8")

        assets = BatchScanner().scan(tmp_path, "property_photo")
        result = await BatchCoordinator().process_batch(assets)

        statuses = {j.asset.filename: j.status for j in result.jobs}
        assert statuses == {"back.png": "processed", "deed.pdf": "rejected", "front.jpg": "processed"}


# =====================================================================
#  INGEST
# =====================================================================

class TestIngest:

    @pytest.mark.asyncio
    async def test_ingest_to_local_storage(self, tmp_path, make_asset, minimal_pdf):
        settings = Settings(_env_file=None, storage_root=tmp_path / "store")
        photo = make_asset(filename="front.jpg")
        contract = make_asset(content=minimal_pdf, media_type="contract", filename="contract.pdf")

        result = await ingest([photo, contract], "agent-42", context_id="listing-7", settings=settings)

        assert len(result.uploaded) == 2
        root = tmp_path / "store" / "media" / "agent-42" / "listing-7"

        contract_dir = root / "contract" / contract.asset_id
        manifest = json.loads((contract_dir / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["directives"]["encryption_enabled"] is True
        assert manifest["directives"]["requires_verification"] is True
        assert manifest["metadata"]["title"] == "Purchase Agreement"
        assert (contract_dir / "original.pdf").read_bytes() == minimal_pdf

        photo_dir = root / "property_photo" / photo.asset_id
        stored = {p.stem for p in photo_dir.iterdir()}
        assert {"original", "thumbnail", "card", "gallery", "hero", "placeholder", "manifest"} <= stored

    @pytest.mark.asyncio
    async def test_reingest_flags_known_content(self, make_asset):
        first = make_asset()
        batch = await BatchCoordinator().process_batch([first])
        known = {batch.jobs[0].checksum: first.asset_id}

        again = make_asset(content=first.content)
        result = await BatchCoordinator(known_checksums=known).process_batch([again])

        assert result.jobs[0].duplicate_of == first.asset_id
