# src/storage/base_storage.py — v1
"""Abstract storage collaborator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from listingmedia.core.models import StoredAsset
from listingmedia.upload.models import UploadRequest


class BaseStorageClient(ABC):
    """Unified interface for durable media storage backends.

    Implementations raise UploadFailure for every write error so that the
    upload coordinator can decide whether to retry.
    """

    @abstractmethod
    async def store(self, request: UploadRequest) -> StoredAsset:
        """Durably write the original, its variants and a manifest."""

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Read a stored object back by key."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if an object exists."""
