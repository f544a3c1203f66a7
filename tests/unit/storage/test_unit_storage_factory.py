# tests/unit/storage/test_unit_storage_factory.py — v1
"""Tests for storage/storage_factory.py."""

from __future__ import annotations

from unittest.mock import patch

from listingmedia.config.settings import Settings
from listingmedia.storage.local_storage import LocalStorage
from listingmedia.storage.storage_factory import create_storage


class TestCreateStorage:
    def test_local(self, tmp_path):
        storage = create_storage(Settings(_env_file=None, storage_root=tmp_path))
        assert isinstance(storage, LocalStorage)
        assert storage.root == tmp_path.resolve()

    def test_s3(self):
        settings = Settings(
            _env_file=None,
            storage_backend="s3",
            storage_s3_bucket="media-bucket",
            storage_s3_region="eu-west-1",
            storage_s3_endpoint_url="http://localhost:9000",
        )
        with patch("boto3.client") as client_factory:
            storage = create_storage(settings)
        client_factory.assert_called_once_with(
            "s3", region_name="eu-west-1", endpoint_url="http://localhost:9000",
        )
        assert storage.object_url("k") == "http://localhost:9000/media-bucket/k"
