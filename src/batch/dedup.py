# src/batch/dedup.py — v2
"""Batch deduplicator — flag assets whose content checksum was already seen.

Duplicates are flagged, not dropped: the job keeps its outcome and gets
``duplicate_of`` plus a warning, and the caller decides whether to upload.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from listingmedia.core.models import ProcessingJob

logger = logging.getLogger(__name__)


class BatchDeduplicator:
    """Compare job checksums within a batch and against known checksums.

    Args:
        known_checksums: checksum -> asset_id of content stored earlier
            (e.g. loaded from the storage index by the caller).
    """

    def __init__(self, known_checksums: Mapping[str, str] | None = None) -> None:
        self._index: dict[str, str] = dict(known_checksums or {})

    def check(self, job: ProcessingJob) -> str | None:
        """Flag ``job`` if its checksum is known, else register it.

        Returns:
            asset_id of the earlier copy, or None.
        """
        checksum = job.checksum
        if not checksum:
            return None

        original = self._index.get(checksum)
        if original is None or original == job.asset.asset_id:
            self._index[checksum] = job.asset.asset_id
            return None

        job.duplicate_of = original
        job.warnings.append(
            f"Duplicate content: same checksum as asset {original}"
        )
        logger.debug("Duplicate: %s -> %s", job.asset.filename, original)
        return original

    def mark_duplicates(self, jobs: Iterable[ProcessingJob]) -> int:
        """Check jobs in order; the first occurrence of content is the original.

        Returns:
            Number of jobs flagged.
        """
        flagged = sum(1 for job in jobs if self.check(job) is not None)
        if flagged:
            logger.info("Dedup complete: %d duplicate(s) flagged", flagged)
        return flagged
