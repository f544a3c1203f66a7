# src/extraction/pdf_extractor.py — v3
"""Best-effort PDF metadata scan.

Only the leading window of the file is inspected, as text, for structural
markers: the encryption dictionary, Info fields and the page-tree count.
This is a heuristic, not a parser. A marker outside the window (e.g. an
Info dictionary near the trailer) is simply reported as absent.
"""

from __future__ import annotations

import logging
import re

from listingmedia.core.formats import MIME_PDF
from listingmedia.core.models import AssetMetadata
from listingmedia.extraction.base_extractor import BaseExtractor, split_keywords

logger = logging.getLogger(__name__)

DEFAULT_SCAN_WINDOW = 8192

_HEADER = b"%PDF-"
_ENCRYPT_RE = re.compile(r"/Encrypt\b")
_PAGES_DICT_RE = re.compile(r"<<(?:(?!>>).)*?/Type\s*/Pages\b(?:(?!>>).)*?>>", re.DOTALL)
_COUNT_RE = re.compile(r"/Count\s+(\d+)")


def _info_field_re(name: str) -> re.Pattern[str]:
    return re.compile(rf"/{name}\s*\(([^)]+)\)")


_TITLE_RE = _info_field_re("Title")
_AUTHOR_RE = _info_field_re("Author")
_SUBJECT_RE = _info_field_re("Subject")
_KEYWORDS_RE = _info_field_re("Keywords")


class PdfMetadataExtractor(BaseExtractor):
    """Scan the head of a PDF for encryption and Info dictionary markers."""

    def __init__(self, scan_window: int = DEFAULT_SCAN_WINDOW) -> None:
        self._scan_window = scan_window

    @property
    def supported_mime_types(self) -> list[str]:
        return [MIME_PDF]

    def extract_into(self, content: bytes, metadata: AssetMetadata) -> None:
        head = content[: self._scan_window]
        if not head.lstrip().startswith(_HEADER):
            metadata.degradations.append("pdf: missing %PDF- header")
            logger.warning("PDF header missing, scanning content anyway")

        # latin-1 maps every byte, so decoding never fails on binary streams
        text = head.decode("latin-1")

        if _ENCRYPT_RE.search(text):
            metadata.is_encrypted = True
            metadata.has_password = True

        metadata.title = _first_group(_TITLE_RE, text)
        metadata.author = _first_group(_AUTHOR_RE, text)
        metadata.subject = _first_group(_SUBJECT_RE, text)

        keywords = _first_group(_KEYWORDS_RE, text)
        if keywords:
            metadata.keywords = split_keywords(keywords)

        metadata.page_count = _page_count(text)


def _first_group(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


def _page_count(text: str) -> int | None:
    """Largest /Count among page-tree nodes; the root node carries the total."""
    counts: list[int] = []
    for node in _PAGES_DICT_RE.finditer(text):
        counts.extend(int(m.group(1)) for m in _COUNT_RE.finditer(node.group(0)))
    return max(counts) if counts else None
