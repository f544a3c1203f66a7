# src/core/errors.py — v1
"""Exception types raised inside pipeline stages.

Stage code raises these; MediaProcessor and BatchCoordinator catch them and
record a StageFailure on the ProcessingJob instead of letting them unwind a
batch.
"""

from __future__ import annotations


class MediaPipelineError(Exception):
    """Base class for all pipeline stage errors."""


class UndecodableImageError(MediaPipelineError):
    """The source image could not be decoded, so no variant can be produced."""


class UnsupportedEncoderError(MediaPipelineError):
    """The runtime has no encoder for the requested output format."""

    def __init__(self, fmt: str) -> None:
        self.format = fmt
        super().__init__(f"No encoder available for format {fmt!r}")


class UploadFailure(MediaPipelineError):
    """The storage collaborator rejected or could not receive an upload.

    Always retryable from the caller's point of view; ``transient`` hints
    whether an immediate retry is worthwhile (network) or not (auth, quota).
    """

    def __init__(self, message: str, transient: bool = True) -> None:
        self.transient = transient
        super().__init__(message)


class PolicyTableError(ValueError):
    """Raised when an external policy table cannot be parsed."""
