# src/validation/validator.py — v1
"""Policy validation of an asset and its extracted metadata.

Rules are applied in a fixed order and each appends to ``errors``
(blocking) or ``warnings`` (advisory). Dimension bounds are asymmetric:
undersized media is rejected, oversized media only warned about.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import TYPE_CHECKING

from listingmedia.core.models import AssetMetadata, MediaAsset, ValidationPolicy, ValidationResult

if TYPE_CHECKING:
    from listingmedia.extraction.metadata_extractor import MetadataExtractor
    from listingmedia.policy.registry import PolicyRegistry

logger = logging.getLogger(__name__)

DENYLISTED_EXTENSIONS: frozenset[str] = frozenset(
    {"exe", "bat", "cmd", "scr", "vbs", "js", "jar"}
)

MIN_ASPECT_RATIO = 0.5
MAX_ASPECT_RATIO = 3.0

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(size_bytes: int) -> str:
    """Human-readable size (``10485760`` -> ``"10 MB"``)."""
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def denylisted_extension(filename: str) -> str | None:
    """Return the first executable-style extension found in ``filename``.

    Every dot-separated segment after the stem is checked, so double
    extensions such as ``invoice.pdf.exe`` are caught regardless of order.
    """
    name = PurePath(filename.strip().lower()).name
    for segment in name.split(".")[1:]:
        if segment.strip() in DENYLISTED_EXTENSIONS:
            return f".{segment.strip()}"
    return None


class Validator:
    """Apply a ValidationPolicy to an asset and its metadata."""

    def validate(
        self,
        asset: MediaAsset,
        metadata: AssetMetadata,
        policy: ValidationPolicy,
    ) -> ValidationResult:
        result = ValidationResult()

        self._check_format(asset, policy, result)
        self._check_size(asset, policy, result)
        self._check_filename(asset, result)
        self._check_dimensions(metadata, policy, result)
        self._check_aspect_ratio(metadata, result)

        logger.debug(
            "Validated %s: %d errors, %d warnings",
            asset.filename, len(result.errors), len(result.warnings),
        )
        return result

    @staticmethod
    def _check_format(
        asset: MediaAsset, policy: ValidationPolicy, result: ValidationResult,
    ) -> None:
        if asset.mime_type not in policy.allowed_formats:
            allowed = ", ".join(sorted(policy.allowed_formats))
            result.errors.append(
                f"Invalid file type {asset.mime_type!r}. Allowed types: {allowed}"
            )

    @staticmethod
    def _check_size(
        asset: MediaAsset, policy: ValidationPolicy, result: ValidationResult,
    ) -> None:
        size = asset.size_bytes
        if size > policy.max_size_bytes:
            result.errors.append(
                f"File size ({format_file_size(size)}) exceeds the maximum "
                f"of {format_file_size(policy.max_size_bytes)}"
            )

    @staticmethod
    def _check_filename(asset: MediaAsset, result: ValidationResult) -> None:
        ext = denylisted_extension(asset.filename)
        if ext is not None:
            result.errors.append(
                f"File name contains a blocked extension ({ext}) and is not "
                "allowed for security reasons"
            )

    @staticmethod
    def _check_dimensions(
        metadata: AssetMetadata, policy: ValidationPolicy, result: ValidationResult,
    ) -> None:
        w, h = metadata.width, metadata.height
        if w is None or h is None:
            return

        too_narrow = policy.min_width is not None and w < policy.min_width
        too_short = policy.min_height is not None and h < policy.min_height
        if too_narrow or too_short:
            result.errors.append(
                f"Image dimensions ({w}x{h}) are below the minimum "
                f"({policy.min_width or 0}x{policy.min_height or 0})"
            )

        too_wide = policy.max_width is not None and w > policy.max_width
        too_tall = policy.max_height is not None and h > policy.max_height
        if too_wide or too_tall:
            result.warnings.append(
                f"Image dimensions ({w}x{h}) are above the recommended maximum "
                f"({policy.max_width or w}x{policy.max_height or h})"
            )

    @staticmethod
    def _check_aspect_ratio(metadata: AssetMetadata, result: ValidationResult) -> None:
        ratio = metadata.aspect_ratio
        if ratio is None:
            return
        if ratio < MIN_ASPECT_RATIO or ratio > MAX_ASPECT_RATIO:
            result.warnings.append(
                f"Unusual aspect ratio ({ratio:.2f}). "
                f"Recommended: {MIN_ASPECT_RATIO}-{MAX_ASPECT_RATIO}"
            )


def validate_asset(
    asset: MediaAsset,
    registry: PolicyRegistry,
    extractor: MetadataExtractor,
) -> tuple[AssetMetadata, ValidationResult]:
    """Extract metadata and validate against the asset's own policy tag."""
    metadata = extractor.extract(asset.content, asset.mime_type)
    policy = registry.resolve(asset.media_type)
    return metadata, Validator().validate(asset, metadata, policy)
