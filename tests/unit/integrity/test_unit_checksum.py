# tests/unit/integrity/test_unit_checksum.py — v2
"""Tests for integrity/checksum.py — deterministic content digests."""

from __future__ import annotations

import hashlib

import pytest

from listingmedia.integrity.checksum import ChecksumService, digest, verify

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestDigest:
    def test_known_value(self):
        assert digest(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_deterministic(self):
        data = b"\x00\x01" * 5000
        assert digest(data) == digest(bytes(data))

    def test_empty_input(self):
        assert digest(b"") == EMPTY_SHA256

    def test_different_content_differs(self):
        assert digest(b"a") != digest(b"b")

    def test_other_algorithm(self):
        assert digest(b"abc", "md5") == hashlib.md5(b"abc").hexdigest()

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unsupported checksum algorithm"):
            digest(b"abc", "crc-not-a-hash")

    @pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
    def test_variable_length_algorithm(self, algorithm):
        with pytest.raises(ValueError, match="variable-length"):
            digest(b"abc", algorithm)


class TestVerify:
    def test_match(self):
        assert verify(b"deed", digest(b"deed"))

    def test_match_is_case_insensitive(self):
        assert verify(b"deed", digest(b"deed").upper())

    def test_mismatch(self):
        assert not verify(b"deed", digest(b"deeds"))


class TestChecksumService:
    def test_bound_algorithm(self):
        svc = ChecksumService("sha512")
        assert svc.algorithm == "sha512"
        assert svc.digest(b"x") == hashlib.sha512(b"x").hexdigest()
        assert svc.verify(b"x", svc.digest(b"x"))

    def test_rejects_unknown_algorithm_at_construction(self):
        with pytest.raises(ValueError):
            ChecksumService("nope")

    def test_rejects_variable_length_algorithm_at_construction(self):
        with pytest.raises(ValueError, match="variable-length"):
            ChecksumService("shake_128")
