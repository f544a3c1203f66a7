# src/storage/s3_storage.py — v1
"""S3-compatible storage (STORAGE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from listingmedia.core.errors import UploadFailure
from listingmedia.core.models import StoredAsset
from listingmedia.storage import layout
from listingmedia.storage.base_storage import BaseStorageClient
from listingmedia.storage.models import StoredManifest
from listingmedia.upload.models import UploadRequest

logger = logging.getLogger(__name__)

# Client error codes that will not go away on retry.
PERMANENT_ERROR_CODES = frozenset({
    "AccessDenied",
    "InvalidAccessKeyId",
    "NoSuchBucket",
    "SignatureDoesNotMatch",
    "InvalidBucketName",
})


class S3Storage(BaseStorageClient):
    """Store media in S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            client: Pre-built boto3 S3 client (tests inject a stub).
        """
        if client is None:
            try:
                import boto3
            except ImportError as e:
                raise ImportError(
                    "boto3 package required for S3 storage: pip install boto3"
                ) from e

            kwargs: dict[str, Any] = {}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)

        self._s3 = client
        self._bucket = bucket
        self._region = region
        self._endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None

    def object_url(self, key: str) -> str:
        if self._endpoint_url:
            return f"{self._endpoint_url}/{self._bucket}/{key}"
        if self._region and self._region != "us-east-1":
            return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
        return f"https://{self._bucket}.s3.amazonaws.com/{key}"

    def _put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: dict[str, str],
        encrypt: bool,
    ) -> None:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
            "Metadata": metadata,
        }
        if encrypt:
            params["ServerSideEncryption"] = "AES256"
        self._s3.put_object(**params)
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, key, len(body))

    def _store_sync(self, request: UploadRequest) -> StoredAsset:
        encrypt = request.directives.encryption_enabled
        object_metadata = {
            **_ascii_metadata(request.metadata),
            **request.directives.as_metadata(),
            "checksum": request.checksum,
            "checksum-algorithm": request.checksum_algorithm,
            "asset-id": request.asset_id,
        }

        self._put(request.object_key, request.content, request.mime_type, object_metadata, encrypt)
        variant_urls: dict[str, str] = {}
        for variant in request.variants:
            self._put(
                variant.key,
                variant.content,
                variant.mime_type,
                {"asset-id": request.asset_id, "variant": variant.name,
                 **request.directives.as_metadata()},
                encrypt,
            )
            variant_urls[variant.name] = self.object_url(variant.key)

        manifest = StoredManifest.from_request(request)
        self._put(
            layout.manifest_key(request.namespace, request.asset_id),
            manifest.model_dump_json(indent=2).encode("utf-8"),
            "application/json",
            {"asset-id": request.asset_id},
            encrypt,
        )
        return StoredAsset(
            url=self.object_url(request.object_key),
            storage_id=f"s3://{self._bucket}/{request.object_key}",
            variant_urls=variant_urls,
        )

    async def store(self, request: UploadRequest) -> StoredAsset:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            return await asyncio.to_thread(self._store_sync, request)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            raise UploadFailure(
                f"S3 rejected {request.object_key} ({code}): {e}",
                transient=code not in PERMANENT_ERROR_CODES,
            ) from e
        except BotoCoreError as e:
            raise UploadFailure(f"S3 upload failed for {request.object_key}: {e}") from e

    async def read(self, key: str) -> bytes:
        response = await asyncio.to_thread(self._s3.get_object, Bucket=self._bucket, Key=key)
        return response["Body"].read()

    async def exists(self, key: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            await asyncio.to_thread(self._s3.head_object, Bucket=self._bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        return True


def _ascii_metadata(metadata: dict[str, str]) -> dict[str, str]:
    """S3 user metadata must be ASCII; non-ASCII characters are replaced."""
    return {
        key: value.encode("ascii", "replace").decode("ascii")
        for key, value in metadata.items()
    }
