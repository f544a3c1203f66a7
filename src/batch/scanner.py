# src/batch/scanner.py — v2
"""Batch scanner — load supported files from a directory as MediaAssets."""

from __future__ import annotations

import logging
from pathlib import Path

from listingmedia.core.formats import EXTENSION_MIME_MAP, MIME_OCTET
from listingmedia.core.models import MediaAsset

logger = logging.getLogger(__name__)


def load_asset(path: Path, media_type: str, mime_type: str | None = None) -> MediaAsset:
    """Read one file into a MediaAsset, guessing the MIME type from its extension."""
    return MediaAsset(
        content=path.read_bytes(),
        media_type=media_type,
        filename=path.name,
        mime_type=mime_type or EXTENSION_MIME_MAP.get(path.suffix.lower(), MIME_OCTET),
    )


class BatchScanner:
    """Discover files with a known media extension under a directory.

    Files with unknown extensions are skipped; validation decides whether
    the known ones are acceptable for the media type.
    """

    def __init__(self, extensions: set[str] | None = None) -> None:
        self._extensions = {e.lower() for e in (extensions or EXTENSION_MIME_MAP)}

    def discover(self, scan_root: Path, recursive: bool = False) -> list[Path]:
        if not scan_root.is_dir():
            msg = f"Scan root is not a directory: {scan_root}"
            raise ValueError(msg)

        pattern_fn = scan_root.rglob if recursive else scan_root.glob
        paths = [
            path for path in sorted(pattern_fn("*"))
            if path.is_file() and path.suffix.lower() in self._extensions
        ]
        logger.info(
            "Scanned %s: found %d supported files (recursive=%s)",
            scan_root, len(paths), recursive,
        )
        return paths

    def scan(
        self,
        scan_root: Path,
        media_type: str,
        recursive: bool = False,
    ) -> list[MediaAsset]:
        """Load every supported file under ``scan_root`` tagged with ``media_type``.

        Unreadable files are logged and skipped.
        """
        assets: list[MediaAsset] = []
        for path in self.discover(scan_root, recursive):
            try:
                assets.append(load_asset(path, media_type))
            except OSError as e:
                logger.warning("Skipping unreadable file %s: %s", path, e)
        return assets
