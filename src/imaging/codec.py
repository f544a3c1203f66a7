# src/imaging/codec.py — v1
"""Image codec abstraction: decode, resize, blur, encode.

PillowCodec is the default implementation. Encoder availability is read
from Pillow's save registry, which only lists WebP / AVIF when the
runtime was built with the matching native library.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from listingmedia.core.errors import UndecodableImageError, UnsupportedEncoderError
from listingmedia.core.formats import OUTPUT_FORMATS

logger = logging.getLogger(__name__)

RasterImage = Image.Image

# Background used when flattening transparency for formats without alpha.
_FLATTEN_BACKGROUND = (255, 255, 255)


class ImageCodec(ABC):
    """Unified interface for image decode / transform / encode backends."""

    @abstractmethod
    def decode(self, content: bytes) -> RasterImage:
        """Decode raw bytes into a raster image (fully loaded, upright)."""

    @abstractmethod
    def resize(self, image: RasterImage, width: int, height: int) -> RasterImage:
        """Resize to exactly width x height with a high-quality filter."""

    @abstractmethod
    def blur(self, image: RasterImage, radius: float) -> RasterImage:
        """Gaussian blur."""

    @abstractmethod
    def encode(self, image: RasterImage, fmt: str, quality: int) -> bytes:
        """Encode to an output format ('webp', 'avif', 'jpeg', 'png')."""

    @abstractmethod
    def supports(self, fmt: str) -> bool:
        """Whether an encoder for ``fmt`` is available in this runtime."""


class PillowCodec(ImageCodec):
    """ImageCodec backed by Pillow."""

    def decode(self, content: bytes) -> RasterImage:
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                upright = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise UndecodableImageError(f"Cannot decode image: {e}") from e

        return _normalize_mode(upright)

    def resize(self, image: RasterImage, width: int, height: int) -> RasterImage:
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def blur(self, image: RasterImage, radius: float) -> RasterImage:
        return image.filter(ImageFilter.GaussianBlur(radius))

    def supports(self, fmt: str) -> bool:
        entry = OUTPUT_FORMATS.get(fmt)
        if entry is None:
            return False
        Image.init()
        return entry[0] in Image.SAVE

    def encode(self, image: RasterImage, fmt: str, quality: int) -> bytes:
        if not self.supports(fmt):
            raise UnsupportedEncoderError(fmt)

        pil_format = OUTPUT_FORMATS[fmt][0]
        prepared = _prepare_for_format(image, pil_format)

        params: dict[str, object]
        if pil_format == "JPEG":
            params = {"quality": quality, "optimize": True, "progressive": True}
        elif pil_format == "PNG":
            params = {"optimize": True}
        elif pil_format == "WEBP":
            params = {"quality": quality, "method": 4}
        else:
            params = {"quality": quality}

        buf = io.BytesIO()
        prepared.save(buf, format=pil_format, **params)
        return buf.getvalue()


def _has_alpha(image: RasterImage) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _normalize_mode(image: RasterImage) -> RasterImage:
    """Bring palette, CMYK and high-bit-depth images to RGB(A) / L."""
    if image.mode in ("RGB", "RGBA", "L"):
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _prepare_for_format(image: RasterImage, pil_format: str) -> RasterImage:
    if pil_format == "JPEG":
        if _has_alpha(image):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, _FLATTEN_BACKGROUND)
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if image.mode not in ("RGB", "L"):
            return image.convert("RGB")
        return image
    if pil_format in ("WEBP", "AVIF") and image.mode not in ("RGB", "RGBA"):
        return image.convert("RGBA" if _has_alpha(image) else "RGB")
    return image


_default_codec: ImageCodec | None = None


def default_codec() -> ImageCodec:
    global _default_codec
    if _default_codec is None:
        _default_codec = PillowCodec()
    return _default_codec
