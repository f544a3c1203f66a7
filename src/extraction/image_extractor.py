# src/extraction/image_extractor.py — v1
"""Raster image header reader using Pillow.

Reads dimensions and container format from the image header without
decoding pixel data (Image.open is lazy until .load() is called).
"""

from __future__ import annotations

import io
import logging

from PIL import Image

from listingmedia.core.formats import RASTER_MIME_TYPES
from listingmedia.core.models import AssetMetadata
from listingmedia.extraction.base_extractor import BaseExtractor

logger = logging.getLogger(__name__)

_EXIF_ORIENTATION = 0x0112
# EXIF orientations that rotate the image by 90 or 270 degrees
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}


class ImageMetadataExtractor(BaseExtractor):
    """Extractor for raster image formats (JPEG, PNG, WebP, AVIF, GIF)."""

    @property
    def supported_mime_types(self) -> list[str]:
        return sorted(RASTER_MIME_TYPES)

    def extract_into(self, content: bytes, metadata: AssetMetadata) -> None:
        with Image.open(io.BytesIO(content)) as img:
            width, height = img.size
            metadata.image_format = img.format
            orientation = self._orientation(img)

        # Report display dimensions, as the derivative stage will see them
        # after EXIF transposition.
        if orientation in _TRANSPOSED_ORIENTATIONS:
            width, height = height, width

        metadata.width = width
        metadata.height = height
        if height > 0:
            metadata.aspect_ratio = width / height

    @staticmethod
    def _orientation(img: Image.Image) -> int | None:
        try:
            return img.getexif().get(_EXIF_ORIENTATION)
        except Exception:
            logger.debug("EXIF unreadable, assuming default orientation")
            return None
