# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides Pillow-generated images, minimal PDF bytes, asset factories and
a clean logging context. No external services; storage runs in tmp_path.
"""

from __future__ import annotations

import io
from collections.abc import Callable

import pytest
from PIL import Image

from listingmedia.core.formats import guess_mime_type
from listingmedia.core.models import MediaAsset
from listingmedia.logging.context import clear_context
from listingmedia.policy.registry import PolicyRegistry

MB = 1024 * 1024

ImageFactory = Callable[..., bytes]
AssetFactory = Callable[..., MediaAsset]


def _encode_image(
    width: int = 800,
    height: int = 600,
    fmt: str = "JPEG",
    mode: str = "RGB",
    color: tuple[int, ...] | int = (120, 160, 200),
    exif_orientation: int | None = None,
) -> bytes:
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    params: dict[str, object] = {}
    if exif_orientation is not None:
        exif = Image.Exif()
        exif[0x0112] = exif_orientation
        params["exif"] = exif.tobytes()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


# === FIXTURES: Raw bytes ===


@pytest.fixture
def image_bytes() -> ImageFactory:
    """Factory: ``image_bytes(width, height, fmt="JPEG", ...)`` -> encoded bytes."""
    return _encode_image


@pytest.fixture
def jpeg_1920x1080() -> bytes:
    return _encode_image(1920, 1080, "JPEG")


@pytest.fixture
def corrupt_jpeg() -> bytes:
    """JPEG magic number followed by garbage."""
    return b"\xff\xd8\xff\xe0" + b"not really a jpeg" * 64


@pytest.fixture
def minimal_pdf() -> bytes:
    """Two-page PDF with an Info dictionary near the head of the file."""
    return (
        b"%PDF-1.4\n"
        b"1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        b"2 0 obj << /Type /Pages /Kids [3 0 R 4 0 R] /Count 2 >> endobj\n"
        b"3 0 obj << /Type /Page /Parent 2 0 R >> endobj\n"
        b"4 0 obj << /Type /Page /Parent 2 0 R >> endobj\n"
        b"5 0 obj << /Title (Purchase Agreement) /Author (Jane Broker) "
        b"/Subject (Lot 12 Maple Street) /Keywords (deed; sale, escrow) >> endobj\n"
        b"trailer << /Root 1 0 R /Info 5 0 R >>\n"
        b"%%EOF\n"
    )


@pytest.fixture
def encrypted_pdf() -> bytes:
    return (
        b"%PDF-1.6\n"
        b"1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        b"2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj\n"
        b"trailer << /Root 1 0 R /Encrypt 9 0 R >>\n"
        b"%%EOF\n"
    )


# === FIXTURES: Domain objects ===


@pytest.fixture
def make_asset() -> AssetFactory:
    """Factory for MediaAssets; content defaults to an 800x600 JPEG."""

    def _make(
        content: bytes | None = None,
        media_type: str = "property_photo",
        filename: str = "photo.jpg",
        mime_type: str | None = None,
        **kwargs: object,
    ) -> MediaAsset:
        return MediaAsset(
            content=_encode_image() if content is None else content,
            media_type=media_type,
            filename=filename,
            mime_type=mime_type or guess_mime_type(filename),
            **kwargs,
        )

    return _make


@pytest.fixture
def registry() -> PolicyRegistry:
    return PolicyRegistry()


@pytest.fixture(autouse=True)
def _clean_log_context():
    clear_context()
    yield
    clear_context()
