# src/logging/context.py — v2
"""Contextual logging support: attach batch, job, asset and stage to records.

Context variables are copied into worker threads started with
``asyncio.to_thread``, so a job's context follows it off the event loop.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_asset_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "asset_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    job_id: str | None = None
    asset_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        job_id=_job_id.get(),
        asset_id=_asset_id.get(),
        stage=_stage.get(),
    )


def set_batch_context(batch_id: str | None) -> None:
    _batch_id.set(batch_id)


def set_job_context(job_id: str, asset_id: str) -> None:
    """Set job-level context (called once per processed asset)."""
    _job_id.set(job_id)
    _asset_id.set(asset_id)
    _stage.set(None)


def set_stage(stage: str | None) -> None:
    _stage.set(stage)


@contextmanager
def stage_context(stage: str) -> Iterator[None]:
    """Tag records emitted inside the block with ``stage``."""
    token = _stage.set(stage)
    try:
        yield
    finally:
        _stage.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _job_id.set(None)
    _asset_id.set(None)
    _stage.set(None)
