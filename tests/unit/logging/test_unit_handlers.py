# tests/unit/logging/test_unit_handlers.py — v2
"""Tests for logging/handlers.py — size parsing and handler factories."""

from __future__ import annotations

import io
import sys

import pytest

from listingmedia.logging.handlers import (
    create_console_handler,
    create_rotating_handler,
    parse_size,
)


class TestParseSize:
    def test_mb(self):
        assert parse_size("10MB") == 10 * 1024 * 1024

    def test_kb_with_space(self):
        assert parse_size("512 KB") == 512 * 1024

    def test_gb(self):
        assert parse_size("1GB") == 1024 * 1024 * 1024

    def test_decimal(self):
        assert parse_size("1.5MB") == int(1.5 * 1024 * 1024)

    def test_bare_number_is_bytes(self):
        assert parse_size("2048") == 2048

    def test_case_insensitive(self):
        assert parse_size("10mb") == 10 * 1024 * 1024

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("10bytes")

    def test_empty_string(self):
        with pytest.raises(ValueError):
            parse_size("")

    def test_zero(self):
        with pytest.raises(ValueError, match="positive"):
            parse_size("0MB")


class TestCreateHandlers:
    def test_rotating_handler(self, tmp_path):
        handler = create_rotating_handler(str(tmp_path / "a.log"), rotation="1MB", retention=5)
        try:
            assert handler.maxBytes == 1024 * 1024
            assert handler.backupCount == 5
        finally:
            handler.close()

    def test_creates_parent_dirs(self, tmp_path):
        log_file = tmp_path / "nested" / "dir" / "media.log"
        handler = create_rotating_handler(str(log_file))
        handler.close()
        assert log_file.parent.is_dir()

    def test_console_defaults_to_stderr(self):
        assert create_console_handler().stream is sys.stderr

    def test_console_custom_stream(self):
        stream = io.StringIO()
        assert create_console_handler(stream).stream is stream
