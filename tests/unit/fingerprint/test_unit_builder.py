# tests/unit/fingerprint/test_unit_builder.py — v1
"""Tests for fingerprint/builder.py — checksum, average hash, Hamming distance."""

from __future__ import annotations

import hashlib
import io

import pytest
from PIL import Image

from docintel.fingerprint.builder import (
    compute_checksum,
    compute_fingerprint,
    compute_perceptual_hash,
    hamming_distance,
    hash_bit_length,
    hash_similarity,
)


def _make_png(width: int = 64, height: int = 64, dot: bool = False) -> bytes:
    """Left half black, right half white; optional white dot on the left."""
    img = Image.new("L", (width, height), color=0)
    img.paste(255, (width // 2, 0, width, height))
    if dot:
        img.putpixel((2, 2), 255)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestChecksum:
    def test_sha256(self):
        assert compute_checksum(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_deterministic(self):
        assert compute_checksum(b"x" * 100) == compute_checksum(b"x" * 100)


class TestPerceptualHash:
    def test_image_average_hash(self):
        assert compute_perceptual_hash(_make_png(), "image/png") == "0f0f0f0f0f0f0f0f"

    def test_small_change_is_close(self):
        a = compute_perceptual_hash(_make_png(), "image/png")
        b = compute_perceptual_hash(_make_png(dot=True), "image/png")
        _, score = hash_similarity(a, b)
        assert score >= 0.85

    def test_grid_size_controls_length(self):
        assert len(compute_perceptual_hash(_make_png(), "image/png", grid_size=16)) == 64

    def test_non_image_uses_checksum_prefix(self):
        data = b"%PDF-1.4 fake"
        assert compute_perceptual_hash(data, "application/pdf") == compute_checksum(data)[:16]

    def test_undecodable_image_returns_none(self):
        assert compute_perceptual_hash(b"not an image", "image/png") is None


class TestComputeFingerprint:
    def test_image(self):
        data = _make_png()
        fp = compute_fingerprint(data, "image/png")
        assert fp.checksum == compute_checksum(data)
        assert fp.algorithm == "ahash"
        assert len(fp.perceptual_hash) == 16

    def test_pdf(self):
        fp = compute_fingerprint(b"%PDF-1.4", "application/pdf")
        assert fp.algorithm == "sha256_prefix"

    def test_broken_image(self):
        fp = compute_fingerprint(b"\x89PNG broken", "image/png")
        assert fp.perceptual_hash is None
        assert fp.algorithm == "none"


class TestHammingDistance:
    def test_identical(self):
        assert hamming_distance("abcd", "abcd") == 0

    def test_all_bits(self):
        assert hamming_distance("ff", "00") == 8

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("ffff", "ff", 16),
            (None, None, 64),
            (None, "ffff", 16),
            ("zz", "ff", 8),
        ],
    )
    def test_incomparable_is_max_distance(self, a, b, expected):
        assert hamming_distance(a, b) == expected

    def test_bounds(self):
        distance = hamming_distance("0123456789abcdef", "fedcba9876543210")
        assert 0 <= distance <= hash_bit_length("0123456789abcdef")


class TestHashSimilarity:
    def test_two_bits_of_64(self):
        distance, score = hash_similarity("0000000000000000", "0000000000000003")
        assert distance == 2
        assert score == pytest.approx(1 - 2 / 64)

    def test_missing_is_zero(self):
        assert hash_similarity("00", None) == (8, 0.0)
