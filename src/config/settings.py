# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. The policy
table itself is configured by file (POLICY_TABLE_PATH) and frozen at start.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Policy ===
    policy_table_path: Path | None = None

    # === Integrity ===
    checksum_algorithm: str = "sha256"

    # === Extraction ===
    pdf_scan_window_bytes: int = 8192

    # === Derivatives ===
    fallback_format: Literal["jpeg", "png"] = "jpeg"
    responsive_base_width: int = 800
    responsive_enabled: bool = False

    # === Batch ===
    batch_max_concurrency: int = 4
    batch_item_timeout_seconds: float | None = None
    batch_flag_duplicates: bool = True

    # === Storage ===
    storage_backend: Literal["local", "s3"] = "local"
    storage_root: Path = Path("~/.listingmedia/storage")
    storage_prefix: str = "media"
    storage_s3_bucket: str = ""
    storage_s3_region: str = ""
    storage_s3_endpoint_url: str = ""
    upload_max_retries: int = 2
    upload_retry_delay_seconds: float = 1.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("checksum_algorithm")
    @classmethod
    def validate_checksum_algorithm(cls, v: str) -> str:  # noqa: N805
        v = v.lower()
        if v not in hashlib.algorithms_available:
            raise ValueError(f"Unknown checksum algorithm: {v!r}")
        if hashlib.new(v).digest_size == 0:
            raise ValueError(f"Variable-length checksum algorithm not supported: {v!r}")
        return v

    @field_validator("batch_max_concurrency", "pdf_scan_window_bytes", "responsive_base_width")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("log_rotation")
    @classmethod
    def validate_log_rotation(cls, v: str) -> str:  # noqa: N805
        from listingmedia.logging.handlers import parse_size

        parse_size(v)
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.storage_backend == "s3" and not self.storage_s3_bucket:
            errors.append("STORAGE_BACKEND=s3 requires STORAGE_S3_BUCKET")

        if self.batch_item_timeout_seconds is not None and self.batch_item_timeout_seconds <= 0:
            errors.append("BATCH_ITEM_TIMEOUT_SECONDS must be > 0 when set")

        if self.upload_max_retries < 0:
            errors.append("UPLOAD_MAX_RETRIES must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
