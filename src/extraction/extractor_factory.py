# src/extraction/extractor_factory.py — v3
"""Factory: instantiate a metadata extractor from a declared MIME type."""

from __future__ import annotations

from listingmedia.extraction.base_extractor import BaseExtractor
from listingmedia.extraction.docx_extractor import DocxMetadataExtractor
from listingmedia.extraction.image_extractor import ImageMetadataExtractor
from listingmedia.extraction.pdf_extractor import PdfMetadataExtractor

# Registry maps MIME type → extractor class.
_EXTRACTOR_REGISTRY: dict[str, type[BaseExtractor]] = {}


def _register_defaults() -> None:
    """Register built-in extractors."""
    for cls in [ImageMetadataExtractor, PdfMetadataExtractor, DocxMetadataExtractor]:
        instance = cls()
        for mime in instance.supported_mime_types:
            _EXTRACTOR_REGISTRY[mime.lower()] = cls


_register_defaults()


class UnsupportedFormatError(ValueError):
    """Raised when no extractor is available for a MIME type."""


def create_extractor(mime_type: str, **kwargs: object) -> BaseExtractor:
    """Create an extractor for the given MIME type.

    Args:
        mime_type: Declared MIME type (e.g. "application/pdf").
        **kwargs: Passed to the extractor constructor (e.g. scan_window).

    Raises:
        UnsupportedFormatError: If no extractor is registered.
    """
    cls = _EXTRACTOR_REGISTRY.get(mime_type.lower())
    if cls is None:
        raise UnsupportedFormatError(
            f"No extractor for MIME type {mime_type!r}. "
            f"Supported: {', '.join(sorted(_EXTRACTOR_REGISTRY))}"
        )
    return cls(**kwargs)  # type: ignore[call-arg]


def has_extractor(mime_type: str) -> bool:
    return mime_type.lower() in _EXTRACTOR_REGISTRY


def register_extractor(mime_type: str, cls: type[BaseExtractor]) -> None:
    """Register a custom extractor for a MIME type."""
    _EXTRACTOR_REGISTRY[mime_type.lower()] = cls


def supported_mime_types() -> list[str]:
    """Return list of MIME types with a registered extractor."""
    return sorted(_EXTRACTOR_REGISTRY.keys())
