# src/extraction/docx_extractor.py — v2
"""DOCX core-properties reader using python-docx.

Requires the 'python-docx' package.
"""

from __future__ import annotations

import io
import logging

from listingmedia.core.formats import MIME_DOCX
from listingmedia.core.models import AssetMetadata
from listingmedia.extraction.base_extractor import BaseExtractor, split_keywords

logger = logging.getLogger(__name__)


class DocxMetadataExtractor(BaseExtractor):
    """Extractor for Word documents (.docx)."""

    @property
    def supported_mime_types(self) -> list[str]:
        return [MIME_DOCX]

    def extract_into(self, content: bytes, metadata: AssetMetadata) -> None:
        try:
            import docx
        except ImportError as e:
            raise ImportError(
                "python-docx package required for DOCX metadata: "
                "pip install python-docx"
            ) from e

        props = docx.Document(io.BytesIO(content)).core_properties
        metadata.title = props.title or None
        metadata.author = props.author or None
        metadata.subject = props.subject or None
        if props.keywords:
            metadata.keywords = split_keywords(props.keywords)
