# src/storage/storage_factory.py — v1
"""Factory: instantiate the storage collaborator from configuration."""

from __future__ import annotations

from listingmedia.config.settings import Settings
from listingmedia.storage.base_storage import BaseStorageClient
from listingmedia.storage.local_storage import LocalStorage


def create_storage(settings: Settings) -> BaseStorageClient:
    """Create the storage backend selected by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is not supported or misconfigured.
    """
    if settings.storage_backend == "local":
        return LocalStorage(settings.storage_root)

    if settings.storage_backend == "s3":
        from listingmedia.storage.s3_storage import S3Storage
        if not settings.storage_s3_bucket:
            raise ValueError(
                "STORAGE_S3_BUCKET must be set when STORAGE_BACKEND=s3"
            )
        return S3Storage(
            bucket=settings.storage_s3_bucket,
            region=settings.storage_s3_region or None,
            endpoint_url=settings.storage_s3_endpoint_url or None,
        )

    raise ValueError(f"Unsupported storage backend: {settings.storage_backend!r}")
