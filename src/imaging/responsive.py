# src/imaging/responsive.py — v1
"""Responsive image sets: width candidates plus a ``sizes`` attribute."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from listingmedia.core.models import (
    MediaAsset,
    OutputFormat,
    ResponsiveCandidate,
    ResponsiveSet,
    TargetSpec,
)
from listingmedia.imaging.derivatives import DerivativeGenerator

logger = logging.getLogger(__name__)

BREAKPOINTS: dict[str, int] = {
    "xs": 320,
    "sm": 640,
    "md": 768,
    "lg": 1024,
    "xl": 1280,
    "2xl": 1536,
}

SRCSET_MULTIPLIERS: tuple[float, ...] = (0.5, 1.0, 1.5, 2.0)

# Full width on phones, half width on tablets, a third on desktop.
DEFAULT_SIZES: dict[str, str] = {"sm": "100vw", "lg": "50vw"}
DEFAULT_FALLBACK_SIZE = "33vw"


def candidate_widths(base_width: int) -> list[int]:
    """Target widths for ``base_width`` (0.5x, 1x, 1.5x, 2x), ascending."""
    if base_width <= 0:
        raise ValueError(f"base_width must be positive, got {base_width}")
    widths = {math.floor(base_width * m) for m in SRCSET_MULTIPLIERS}
    return sorted(w for w in widths if w > 0)


def _breakpoint_px(key: str | int) -> int:
    if isinstance(key, int):
        return key
    if key in BREAKPOINTS:
        return BREAKPOINTS[key]
    if key.isdigit():
        return int(key)
    raise ValueError(
        f"Unknown breakpoint {key!r}. Known: {', '.join(BREAKPOINTS)}"
    )


def build_sizes_attr(
    breakpoints: Mapping[str | int, str],
    default_size: str | None = None,
) -> str:
    """Render a ``sizes`` attribute from breakpoint -> slot size.

    Keys are breakpoint names (``"md"``) or pixel widths. Conditions are
    ordered by ascending width, the trailing default has no condition.

    >>> build_sizes_attr({"md": "50vw", "sm": "100vw"}, "33vw")
    '(max-width: 640px) 100vw, (max-width: 768px) 50vw, 33vw'
    """
    entries = sorted(
        ((_breakpoint_px(key), size) for key, size in breakpoints.items()),
        key=lambda item: item[0],
    )
    parts = [f"(max-width: {px}px) {size}" for px, size in entries]
    if default_size:
        parts.append(default_size)
    return ", ".join(parts)


class ResponsiveSetBuilder:
    """Build width-keyed candidates through a DerivativeGenerator."""

    def __init__(
        self,
        generator: DerivativeGenerator | None = None,
        output_format: OutputFormat = "webp",
        quality: int = 85,
    ) -> None:
        self.generator = generator or DerivativeGenerator()
        self.output_format = output_format
        self.quality = quality

    def build_srcset(
        self,
        asset: MediaAsset,
        base_width: int,
        breakpoints: Mapping[str | int, str] | None = None,
        default_size: str | None = DEFAULT_FALLBACK_SIZE,
    ) -> ResponsiveSet:
        """Encode one candidate per target width and describe the slot sizes.

        The source is never upscaled, so several targets may land on the
        same actual width; only the first of those is kept. Candidates
        that fail to encode are left out.

        Raises:
            UndecodableImageError: If the source bytes cannot be decoded.
        """
        targets = candidate_widths(base_width)
        specs = [
            TargetSpec(name=f"w{w}", max_width=w, quality=self.quality, format=self.output_format)
            for w in targets
        ]
        target_by_name = {spec.name: spec.max_width for spec in specs}

        image = self.generator.codec.decode(asset.content)
        rendered = self.generator.generate_from_image(image, specs)

        candidates: list[ResponsiveCandidate] = []
        seen: set[int] = set()
        for variant in rendered.variants:
            if variant.width in seen:
                continue
            seen.add(variant.width)
            candidates.append(
                ResponsiveCandidate(
                    width=variant.width,
                    target_width=target_by_name[variant.name],
                    content=variant.content,
                    format=variant.format,
                )
            )

        sizes = build_sizes_attr(
            DEFAULT_SIZES if breakpoints is None else breakpoints, default_size,
        )
        logger.debug(
            "Responsive set for %s: widths=%s", asset.filename, [c.width for c in candidates],
        )
        return ResponsiveSet(candidates=candidates, sizes_attr=sizes)
