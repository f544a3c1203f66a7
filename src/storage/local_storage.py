# src/storage/local_storage.py — v1
"""Local filesystem storage (default backend).

Objects land under ``root`` at their storage key; URLs are ``file://``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from listingmedia.core.errors import UploadFailure
from listingmedia.core.models import StoredAsset
from listingmedia.storage import layout
from listingmedia.storage.base_storage import BaseStorageClient
from listingmedia.storage.models import StoredManifest
from listingmedia.upload.models import UploadRequest

logger = logging.getLogger(__name__)


class LocalStorage(BaseStorageClient):
    """Store media on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise ValueError(f"Key escapes storage root: {key!r}")
        return path

    def _write(self, key: str, content: bytes) -> str:
        path = self._resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write then rename so readers never see a partial object.
        tmp = path.with_name(path.name + ".part")
        tmp.write_bytes(content)
        tmp.replace(path)
        return path.as_uri()

    async def store(self, request: UploadRequest) -> StoredAsset:
        try:
            url = self._write(request.object_key, request.content)
            variant_urls = {
                variant.name: self._write(variant.key, variant.content)
                for variant in request.variants
            }
            manifest = StoredManifest.from_request(request)
            self._write(
                layout.manifest_key(request.namespace, request.asset_id),
                manifest.model_dump_json(indent=2).encode("utf-8"),
            )
        except PermissionError as e:
            raise UploadFailure(f"Permission denied writing {request.object_key}: {e}", transient=False) from e
        except OSError as e:
            raise UploadFailure(f"Local write failed for {request.object_key}: {e}") from e

        logger.debug(
            "Stored %s locally (%d variants, %d bytes)",
            request.object_key, len(variant_urls), request.total_bytes,
        )
        return StoredAsset(url=url, storage_id=request.object_key, variant_urls=variant_urls)

    async def read(self, key: str) -> bytes:
        return self._resolve(key).read_bytes()

    async def exists(self, key: str) -> bool:
        return self._resolve(key).exists()
