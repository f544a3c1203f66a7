# src/imaging/derivatives.py — v1
"""DerivativeGenerator — resize / re-encode a source image into variants.

Each variant is rendered independently from the decoded source: a failure
in one is recorded as a DerivativeFailure and the others still run. A source
that cannot be decoded at all raises UndecodableImageError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from listingmedia.core.errors import UnsupportedEncoderError
from listingmedia.core.models import (
    DerivativeFailure,
    DerivativeSet,
    MediaAsset,
    MediaVariant,
    OutputFormat,
    TargetSpec,
)
from listingmedia.imaging.codec import ImageCodec, RasterImage, default_codec
from listingmedia.imaging.presets import (
    DEFAULT_CONVERSION_MAX_HEIGHT,
    DEFAULT_CONVERSION_MAX_WIDTH,
    DEFAULT_CONVERSION_QUALITY,
    PROPERTY_IMAGE_SPECS,
)

logger = logging.getLogger(__name__)

DEFAULT_CONVERSION_FORMATS: tuple[OutputFormat, ...] = ("webp", "avif", "jpeg")


def fit_within(
    src_width: int,
    src_height: int,
    max_width: int,
    max_height: int | None = None,
) -> tuple[int, int]:
    """Scale (w, h) to fit the bounding box, preserving aspect ratio.

    Never upscales. Each output side is at least 1 pixel.
    """
    scale = max_width / src_width
    if max_height is not None:
        scale = min(scale, max_height / src_height)
    scale = min(scale, 1.0)
    return max(1, round(src_width * scale)), max(1, round(src_height * scale))


class DerivativeGenerator:
    """Produce MediaVariants from a validated raster asset.

    Args:
        codec: Image backend. Defaults to the shared PillowCodec.
        fallback_format: Encoder used when a spec's format is unavailable.
    """

    def __init__(
        self,
        codec: ImageCodec | None = None,
        fallback_format: OutputFormat = "jpeg",
    ) -> None:
        self.codec = codec or default_codec()
        self.fallback_format = fallback_format

    def generate(
        self,
        asset: MediaAsset,
        target_specs: Sequence[TargetSpec] | None = None,
    ) -> DerivativeSet:
        """Render every target spec (the property image set by default).

        Raises:
            UndecodableImageError: If the source bytes cannot be decoded.
        """
        specs = PROPERTY_IMAGE_SPECS if target_specs is None else target_specs
        image = self.codec.decode(asset.content)
        result = self.generate_from_image(image, specs)
        logger.info(
            "Derivatives for %s: %d ok, %d failed",
            asset.filename, len(result.variants), len(result.failures),
        )
        return result

    def generate_from_image(
        self,
        image: RasterImage,
        target_specs: Iterable[TargetSpec],
        allow_fallback: bool = True,
    ) -> DerivativeSet:
        """Render specs against an already-decoded image."""
        result = DerivativeSet()
        for spec in target_specs:
            try:
                variant = self._render(image, spec, result.warnings, allow_fallback)
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                logger.warning("Variant '%s' failed: %s", spec.name, reason)
                result.failures.append(DerivativeFailure(name=spec.name, reason=reason))
                result.warnings.append(f"Variant '{spec.name}' could not be generated: {reason}")
                continue
            result.variants.append(variant)
        return result

    def generate_formats(
        self,
        asset: MediaAsset,
        formats: Sequence[OutputFormat] = DEFAULT_CONVERSION_FORMATS,
        quality: int = DEFAULT_CONVERSION_QUALITY,
        max_width: int = DEFAULT_CONVERSION_MAX_WIDTH,
        max_height: int | None = DEFAULT_CONVERSION_MAX_HEIGHT,
    ) -> DerivativeSet:
        """Encode the same bounded image in several formats.

        A format with no encoder in this runtime is reported as a failure
        instead of being substituted, since the caller asked for it by name.
        """
        specs = [
            TargetSpec(name=fmt, max_width=max_width, max_height=max_height, quality=quality, format=fmt)
            for fmt in formats
        ]
        image = self.codec.decode(asset.content)
        return self.generate_from_image(image, specs, allow_fallback=False)

    def _render(
        self,
        image: RasterImage,
        spec: TargetSpec,
        warnings: list[str],
        allow_fallback: bool,
    ) -> MediaVariant:
        width, height = fit_within(image.width, image.height, spec.max_width, spec.max_height)
        frame = image
        if (width, height) != image.size:
            frame = self.codec.resize(image, width, height)
        if spec.blur_radius > 0:
            frame = self.codec.blur(frame, spec.blur_radius)

        fmt: OutputFormat = spec.format
        if not self.codec.supports(fmt):
            if not allow_fallback:
                raise UnsupportedEncoderError(fmt)
            logger.warning(
                "Encoder for %s unavailable, '%s' falls back to %s",
                fmt, spec.name, self.fallback_format,
            )
            warnings.append(
                f"Variant '{spec.name}': {fmt} encoder unavailable, "
                f"encoded as {self.fallback_format}"
            )
            fmt = self.fallback_format

        content = self.codec.encode(frame, fmt, spec.quality)
        return MediaVariant(
            name=spec.name,
            content=content,
            width=width,
            height=height,
            format=fmt,
            requested_format=spec.format,
            quality=spec.quality,
        )
