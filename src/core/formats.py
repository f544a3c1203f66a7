# src/core/formats.py — v1
"""MIME type constants and extension / encoder mappings shared by all stages."""

from __future__ import annotations

from pathlib import PurePath

MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
MIME_WEBP = "image/webp"
MIME_AVIF = "image/avif"
MIME_GIF = "image/gif"
MIME_SVG = "image/svg+xml"
MIME_PDF = "application/pdf"
MIME_DOC = "application/msword"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_XLS = "application/vnd.ms-excel"
MIME_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MIME_OCTET = "application/octet-stream"

# Mapping of extensions to MIME types
EXTENSION_MIME_MAP: dict[str, str] = {
    ".jpg": MIME_JPEG,
    ".jpeg": MIME_JPEG,
    ".png": MIME_PNG,
    ".webp": MIME_WEBP,
    ".avif": MIME_AVIF,
    ".gif": MIME_GIF,
    ".svg": MIME_SVG,
    ".pdf": MIME_PDF,
    ".doc": MIME_DOC,
    ".docx": MIME_DOCX,
    ".xls": MIME_XLS,
    ".xlsx": MIME_XLSX,
}

# Raster types the imaging stage can decode and derive variants from.
RASTER_MIME_TYPES: frozenset[str] = frozenset(
    {MIME_JPEG, MIME_PNG, MIME_WEBP, MIME_AVIF, MIME_GIF}
)

# Output format name -> (Pillow encoder name, MIME type, file extension)
OUTPUT_FORMATS: dict[str, tuple[str, str, str]] = {
    "jpeg": ("JPEG", MIME_JPEG, "jpg"),
    "webp": ("WEBP", MIME_WEBP, "webp"),
    "avif": ("AVIF", MIME_AVIF, "avif"),
    "png": ("PNG", MIME_PNG, "png"),
}


def guess_mime_type(filename: str) -> str:
    """Guess a MIME type from the last filename extension."""
    return EXTENSION_MIME_MAP.get(PurePath(filename).suffix.lower(), MIME_OCTET)


def extension_for_mime(mime_type: str) -> str:
    """Return a canonical extension (without dot) for a MIME type."""
    for _, fmt_mime, ext in OUTPUT_FORMATS.values():
        if fmt_mime == mime_type:
            return ext
    for ext, mime in EXTENSION_MIME_MAP.items():
        if mime == mime_type:
            return ext.lstrip(".")
    return "bin"


def is_raster_image(mime_type: str) -> bool:
    return mime_type in RASTER_MIME_TYPES
