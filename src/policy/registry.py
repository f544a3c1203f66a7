# src/policy/registry.py — v1
"""Media-type policy table and total lookup.

Every media-type tag resolves to exactly one ValidationPolicy; tags missing
from the table fall back to ``other``. The table is frozen once built and
shared read-only by all batch workers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import ValidationError

from listingmedia.core.errors import PolicyTableError
from listingmedia.core.formats import (
    MIME_DOC,
    MIME_DOCX,
    MIME_JPEG,
    MIME_PDF,
    MIME_PNG,
    MIME_SVG,
    MIME_WEBP,
    MIME_XLS,
    MIME_XLSX,
)
from listingmedia.core.models import ValidationPolicy

if TYPE_CHECKING:
    from listingmedia.config.settings import Settings

logger = logging.getLogger(__name__)

FALLBACK_TAG = "other"

MB = 1024 * 1024

_WORD_FORMATS = frozenset({MIME_PDF, MIME_DOC, MIME_DOCX})
_SCAN_FORMATS = frozenset({MIME_PDF, MIME_JPEG, MIME_PNG})

DEFAULT_POLICIES: dict[str, ValidationPolicy] = {
    # Critical legal documents
    "contract": ValidationPolicy(
        allowed_formats=_WORD_FORMATS, max_size_bytes=50 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    "purchase_agreement": ValidationPolicy(
        allowed_formats=_WORD_FORMATS, max_size_bytes=50 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    "deed": ValidationPolicy(
        allowed_formats=_SCAN_FORMATS, max_size_bytes=25 * MB,
        requires_verification=True, encryption_enabled=True,
    ),
    "title_report": ValidationPolicy(
        allowed_formats=frozenset({MIME_PDF}), max_size_bytes=100 * MB,
        requires_verification=True, encryption_enabled=True,
    ),
    # Reports and inspections
    "inspection_report": ValidationPolicy(
        allowed_formats=_SCAN_FORMATS, max_size_bytes=100 * MB,
        watermark_enabled=True,
    ),
    "appraisal_report": ValidationPolicy(
        allowed_formats=_WORD_FORMATS, max_size_bytes=50 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    # Property media
    "floor_plan": ValidationPolicy(
        allowed_formats=frozenset({MIME_PDF, MIME_JPEG, MIME_PNG, MIME_SVG}),
        max_size_bytes=25 * MB,
        watermark_enabled=True,
    ),
    "property_photo": ValidationPolicy(
        allowed_formats=frozenset({MIME_JPEG, MIME_PNG, MIME_WEBP}),
        max_size_bytes=10 * MB,
        min_width=400, min_height=300,
        max_width=4000, max_height=4000,
        watermark_enabled=True,
    ),
    "survey": ValidationPolicy(
        allowed_formats=_SCAN_FORMATS, max_size_bytes=50 * MB,
        requires_verification=True, encryption_enabled=True,
    ),
    # Financial documents
    "mortgage_document": ValidationPolicy(
        allowed_formats=_WORD_FORMATS, max_size_bytes=25 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    "tax_document": ValidationPolicy(
        allowed_formats=frozenset({MIME_PDF, MIME_XLS, MIME_XLSX}),
        max_size_bytes=25 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    "insurance_policy": ValidationPolicy(
        allowed_formats=_WORD_FORMATS, max_size_bytes=25 * MB,
        requires_verification=True, encryption_enabled=True, watermark_enabled=True,
    ),
    FALLBACK_TAG: ValidationPolicy(
        allowed_formats=frozenset({MIME_PDF, MIME_DOC, MIME_DOCX, MIME_JPEG, MIME_PNG}),
        max_size_bytes=25 * MB,
    ),
}

# Alternative spellings accepted from callers.
TAG_ALIASES: dict[str, str] = {
    "property_photos": "property_photo",
    "photo": "property_photo",
    "floorplan": "floor_plan",
}


def normalize_tag(tag: str | None) -> str:
    """Lower-case a tag and unify separators (``Floor-Plan`` -> ``floor_plan``)."""
    if not tag:
        return FALLBACK_TAG
    normalized = tag.strip().lower().replace("-", "_").replace(" ", "_")
    return TAG_ALIASES.get(normalized, normalized)


class PolicyRegistry:
    """Read-only table mapping media-type tags to validation policies."""

    def __init__(self, policies: Mapping[str, ValidationPolicy] | None = None) -> None:
        table = dict(DEFAULT_POLICIES if policies is None else policies)
        if FALLBACK_TAG not in table:
            table[FALLBACK_TAG] = DEFAULT_POLICIES[FALLBACK_TAG]
        self._policies: Mapping[str, ValidationPolicy] = MappingProxyType(
            {normalize_tag(k): v for k, v in table.items()}
        )

    def resolve(self, media_type_tag: str | None) -> ValidationPolicy:
        """Return the policy for a tag, or the ``other`` policy. Never raises."""
        policy = self._policies.get(normalize_tag(media_type_tag))
        if policy is None:
            logger.debug("No policy for tag %r, using %r", media_type_tag, FALLBACK_TAG)
            return self._policies[FALLBACK_TAG]
        return policy

    def resolve_tag(self, media_type_tag: str | None) -> str:
        """Return the table key a tag resolves to."""
        tag = normalize_tag(media_type_tag)
        return tag if tag in self._policies else FALLBACK_TAG

    def __contains__(self, media_type_tag: object) -> bool:
        return isinstance(media_type_tag, str) and normalize_tag(media_type_tag) in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def tags(self) -> list[str]:
        return sorted(self._policies)

    def allowed_formats(self, media_type_tag: str) -> list[str]:
        return sorted(self.resolve(media_type_tag).allowed_formats)

    def max_size(self, media_type_tag: str) -> int:
        return self.resolve(media_type_tag).max_size_bytes

    def requires_verification(self, media_type_tag: str) -> bool:
        return self.resolve(media_type_tag).requires_verification

    @classmethod
    def from_file(cls, path: Path, merge_defaults: bool = True) -> PolicyRegistry:
        """Build a registry from a JSON table ``{tag: {policy fields}}``.

        Entries override the built-in table when ``merge_defaults`` is set.

        Raises:
            PolicyTableError: If the file is unreadable or an entry is invalid.
        """
        try:
            raw = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PolicyTableError(f"Cannot read policy table {path}: {e}") from e

        if not isinstance(raw, dict):
            raise PolicyTableError(f"Policy table {path} must be a JSON object")

        table: dict[str, ValidationPolicy] = dict(DEFAULT_POLICIES) if merge_defaults else {}
        for tag, fields in raw.items():
            try:
                table[normalize_tag(tag)] = ValidationPolicy.model_validate(fields)
            except ValidationError as e:
                raise PolicyTableError(f"Invalid policy {tag!r} in {path}: {e}") from e

        logger.info("Loaded %d policies from %s", len(raw), path)
        return cls(table)


_default_registry: PolicyRegistry | None = None


def default_registry() -> PolicyRegistry:
    """Process-wide registry built from the built-in table."""
    global _default_registry
    if _default_registry is None:
        _default_registry = PolicyRegistry()
    return _default_registry


def load_registry(settings: Settings) -> PolicyRegistry:
    """Registry for the configured policy table (built-ins when unset)."""
    if settings.policy_table_path is None:
        return default_registry()
    return PolicyRegistry.from_file(settings.policy_table_path)
