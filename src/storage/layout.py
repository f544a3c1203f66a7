# src/storage/layout.py — v2
"""Storage key conventions.

  {prefix}/{owner_id}/{context_id | general}/{media_type}/{asset_id}/original.{ext}
  {prefix}/{owner_id}/{context_id | general}/{media_type}/{asset_id}/{variant}.{ext}
  {prefix}/{owner_id}/{context_id | general}/{media_type}/{asset_id}/manifest.json
"""

from __future__ import annotations

import re

GENERAL_CONTEXT = "general"
ORIGINAL_NAME = "original"
MANIFEST_NAME = "manifest.json"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_segment(value: str) -> str:
    """Make ``value`` usable as a single key segment.

    Raises:
        ValueError: If nothing usable is left (empty, '.', '..').
    """
    segment = _UNSAFE_CHARS.sub("-", value.strip()).strip("-")
    if segment in ("", ".", ".."):
        raise ValueError(f"Invalid storage key segment: {value!r}")
    return segment


def namespace(
    prefix: str,
    owner_id: str,
    media_type: str,
    context_id: str | None = None,
) -> str:
    """Folder for one owner / context / media type."""
    parts = [p for p in prefix.strip("/").split("/") if p]
    parts.extend([
        safe_segment(owner_id),
        safe_segment(context_id) if context_id else GENERAL_CONTEXT,
        safe_segment(media_type),
    ])
    return "/".join(parts)


def asset_dir(namespace_path: str, asset_id: str) -> str:
    return f"{namespace_path}/{safe_segment(asset_id)}"


def original_key(namespace_path: str, asset_id: str, ext: str) -> str:
    return f"{asset_dir(namespace_path, asset_id)}/{ORIGINAL_NAME}.{ext}"


def variant_key(namespace_path: str, asset_id: str, variant: str, ext: str) -> str:
    return f"{asset_dir(namespace_path, asset_id)}/{safe_segment(variant)}.{ext}"


def manifest_key(namespace_path: str, asset_id: str) -> str:
    return f"{asset_dir(namespace_path, asset_id)}/{MANIFEST_NAME}"
