# src/__init__.py — v1
"""listingmedia — media ingestion pipeline for property listings."""

from listingmedia.version import __version__

__all__ = ["__version__"]
