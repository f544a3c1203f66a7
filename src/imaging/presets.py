# src/imaging/presets.py — v1
"""Fixed derivative presets for property images.

The standard set is policy, not user configuration: every accepted
property image gets exactly these five variants.
"""

from __future__ import annotations

from listingmedia.core.models import TargetSpec

THUMBNAIL = TargetSpec(name="thumbnail", max_width=150, max_height=100, quality=80, format="webp")
CARD = TargetSpec(name="card", max_width=400, max_height=300, quality=85, format="webp")
GALLERY = TargetSpec(name="gallery", max_width=800, max_height=600, quality=90, format="webp")
HERO = TargetSpec(name="hero", max_width=1200, max_height=800, quality=90, format="webp")
PLACEHOLDER = TargetSpec(
    name="placeholder", max_width=40, max_height=30, quality=10, format="jpeg", blur_radius=5.0,
)

PROPERTY_IMAGE_SPECS: tuple[TargetSpec, ...] = (THUMBNAIL, CARD, GALLERY, HERO, PLACEHOLDER)

# Bounds used by format conversion when the caller gives none.
DEFAULT_CONVERSION_MAX_WIDTH = 1920
DEFAULT_CONVERSION_MAX_HEIGHT = 1080
DEFAULT_CONVERSION_QUALITY = 85


def spec_by_name(name: str) -> TargetSpec | None:
    for spec in PROPERTY_IMAGE_SPECS:
        if spec.name == name:
            return spec
    return None
