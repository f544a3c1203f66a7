# src/integrity/checksum.py — v2
"""Content checksums for deduplication, integrity and the audit trail.

A digest is a pure function of the input bytes. Empty input is valid and
yields the digest of the empty string.
"""

from __future__ import annotations

import hashlib
import hmac

DEFAULT_ALGORITHM = "sha256"


def digest(content: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hex digest of raw bytes.

    Raises:
        ValueError: If the hash algorithm is not available or has no fixed
            digest length (``shake_128``, ``shake_256``).
    """
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as e:
        raise ValueError(f"Unsupported checksum algorithm: {algorithm!r}") from e
    if hasher.digest_size == 0:
        raise ValueError(f"Unsupported checksum algorithm: {algorithm!r} is variable-length")
    hasher.update(content)
    return hasher.hexdigest()


def verify(content: bytes, expected: str, algorithm: str = DEFAULT_ALGORITHM) -> bool:
    """Constant-time check that ``content`` matches a previously stored digest."""
    return hmac.compare_digest(digest(content, algorithm), expected.lower())


class ChecksumService:
    """Digest helper bound to one configured algorithm."""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM) -> None:
        # Fail at construction rather than on the first asset.
        digest(b"", algorithm)
        self._algorithm = algorithm

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def digest(self, content: bytes) -> str:
        return digest(content, self._algorithm)

    def verify(self, content: bytes, expected: str) -> bool:
        return verify(content, expected, self._algorithm)
