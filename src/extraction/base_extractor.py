# src/extraction/base_extractor.py — v2
"""Abstract metadata extractor interface for media formats."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from listingmedia.core.models import AssetMetadata


class BaseExtractor(ABC):
    """Unified interface for format-aware metadata extractors.

    Implementations fill fields on the given AssetMetadata in place. They
    may raise; MetadataExtractor turns any exception into a degradation.
    """

    @property
    @abstractmethod
    def supported_mime_types(self) -> list[str]:
        """MIME types this extractor handles (e.g., ['application/pdf'])."""

    @abstractmethod
    def extract_into(self, content: bytes, metadata: AssetMetadata) -> None:
        """Populate format-specific fields of ``metadata`` from ``content``."""


def split_keywords(raw: str) -> list[str]:
    """Split a keyword field on commas or semicolons."""
    parts = re.split(r"[;,]", raw)
    return [p.strip() for p in parts if p.strip()]
