# src/extraction/metadata_extractor.py — v1
"""MetadataExtractor — total, non-throwing entry point for the extraction stage.

Metadata extraction must never be the reason a valid asset is rejected:
every extractor failure degrades to partial metadata plus a logged warning.
"""

from __future__ import annotations

import logging

from listingmedia.core.formats import MIME_PDF
from listingmedia.core.models import AssetMetadata
from listingmedia.extraction.extractor_factory import create_extractor, has_extractor
from listingmedia.extraction.pdf_extractor import DEFAULT_SCAN_WINDOW

logger = logging.getLogger(__name__)


class MetadataExtractor:
    """Dispatch raw bytes to the format extractor for their declared MIME type."""

    def __init__(self, pdf_scan_window: int = DEFAULT_SCAN_WINDOW) -> None:
        self._pdf_scan_window = pdf_scan_window

    def extract(self, content: bytes, declared_mime: str) -> AssetMetadata:
        """Recover structural metadata. Never raises.

        Returns:
            AssetMetadata with at least ``size_bytes`` set. Fields the
            format extractor could not read are left as None and the
            failure is listed in ``degradations``.
        """
        metadata = AssetMetadata(size_bytes=len(content))

        if not content or not has_extractor(declared_mime):
            return metadata

        kwargs: dict[str, object] = {}
        if declared_mime.lower() == MIME_PDF:
            kwargs["scan_window"] = self._pdf_scan_window

        try:
            extractor = create_extractor(declared_mime, **kwargs)
            extractor.extract_into(content, metadata)
        except Exception as e:
            reason = f"{declared_mime}: {type(e).__name__}: {e}"
            logger.warning("Metadata extraction degraded (%s)", reason)
            metadata.degradations.append(reason)

        return metadata
