# tests/unit/storage/test_unit_local_storage.py — v1
"""Tests for storage/local_storage.py — filesystem backend in tmp_path."""

from __future__ import annotations

import json

import pytest

from listingmedia.core.errors import UploadFailure
from listingmedia.storage.local_storage import LocalStorage
from listingmedia.upload.models import UploadDirectives, UploadRequest, UploadVariant

NS = "media/owner-1/general/property_photo"


def _request(**overrides) -> UploadRequest:
    fields = dict(
        asset_id="a1",
        namespace=NS,
        object_key=f"{NS}/a1/original.jpg",
        content=b"original-bytes",
        mime_type="image/jpeg",
        checksum="abc123",
        variants=[
            UploadVariant(name="thumbnail", key=f"{NS}/a1/thumbnail.webp", content=b"thumb",
                          mime_type="image/webp", width=150, height=100),
        ],
        directives=UploadDirectives(watermark_enabled=True),
        metadata={"owner-id": "owner-1"},
    )
    fields.update(overrides)
    return UploadRequest(**fields)


class TestLocalStorage:
    @pytest.mark.asyncio
    async def test_store_writes_everything(self, tmp_path):
        storage = LocalStorage(tmp_path)
        stored = await storage.store(_request())

        assert (tmp_path / NS / "a1" / "original.jpg").read_bytes() == b"original-bytes"
        assert (tmp_path / NS / "a1" / "thumbnail.webp").read_bytes() == b"thumb"
        assert stored.url.startswith("file://")
        assert stored.storage_id == f"{NS}/a1/original.jpg"
        assert set(stored.variant_urls) == {"thumbnail"}
        assert not list(tmp_path.rglob("*.part"))

    @pytest.mark.asyncio
    async def test_manifest(self, tmp_path):
        storage = LocalStorage(tmp_path)
        await storage.store(_request())
        manifest = json.loads(await storage.read(f"{NS}/a1/manifest.json"))
        assert manifest["checksum"] == "abc123"
        assert manifest["directives"]["watermark_enabled"] is True
        assert manifest["variants"][0]["size_bytes"] == 5

    @pytest.mark.asyncio
    async def test_read_and_exists(self, tmp_path):
        storage = LocalStorage(tmp_path)
        await storage.store(_request())
        assert await storage.read(f"{NS}/a1/original.jpg") == b"original-bytes"
        assert await storage.exists(f"{NS}/a1/original.jpg")
        assert not await storage.exists(f"{NS}/a1/missing.jpg")

    @pytest.mark.asyncio
    async def test_key_escape_rejected(self, tmp_path):
        storage = LocalStorage(tmp_path / "root")
        with pytest.raises(ValueError, match="escapes"):
            await storage.exists("../outside.txt")

    @pytest.mark.asyncio
    async def test_os_error_becomes_upload_failure(self, tmp_path):
        blocker = tmp_path / "media"
        blocker.write_bytes(b"a file where a directory should be")
        with pytest.raises(UploadFailure) as exc_info:
            await LocalStorage(tmp_path).store(_request())
        assert exc_info.value.transient
