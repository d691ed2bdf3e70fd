# src/fingerprint/builder.py — v1
"""Document fingerprinting: exact checksum and coarse perceptual hash.

- checksum: SHA-256 over the raw bytes, used only for exact-duplicate checks.
- perceptual hash (images): average hash. The image is converted to
  grayscale, resized to an N×N grid, and each sample brighter than the grid
  mean yields a 1 bit. Bits are packed into N²/4 hex digits.
- perceptual hash (non-images): SHA-256 prefix of the same length. It can
  only ever match exactly; no visual near-duplicate signal exists for these.
"""

from __future__ import annotations

import hashlib
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from docintel.core.models import DocumentFingerprint

logger = logging.getLogger(__name__)

DEFAULT_GRID_SIZE = 8
DEFAULT_HASH_BITS = DEFAULT_GRID_SIZE * DEFAULT_GRID_SIZE


def compute_fingerprint(
    raw_bytes: bytes,
    mime_type: str,
    grid_size: int = DEFAULT_GRID_SIZE,
) -> DocumentFingerprint:
    """Compute checksum and perceptual hash for one document."""
    checksum = compute_checksum(raw_bytes)
    is_image = mime_type.startswith("image/")
    perceptual = compute_perceptual_hash(raw_bytes, mime_type, grid_size)

    if perceptual is None:
        algorithm = "none"
    elif is_image:
        algorithm = "ahash"
    else:
        algorithm = "sha256_prefix"

    return DocumentFingerprint(
        checksum=checksum,
        perceptual_hash=perceptual,
        algorithm=algorithm,
    )


def compute_checksum(raw_bytes: bytes) -> str:
    """SHA-256 hex digest of the exact byte content."""
    return hashlib.sha256(raw_bytes).hexdigest()


def compute_perceptual_hash(
    raw_bytes: bytes,
    mime_type: str,
    grid_size: int = DEFAULT_GRID_SIZE,
) -> str | None:
    """Perceptual hash as hex, or None when an image cannot be decoded."""
    hex_length = (grid_size * grid_size) // 4
    if not mime_type.startswith("image/"):
        return hashlib.sha256(raw_bytes).hexdigest()[:hex_length]

    try:
        return _average_hash(raw_bytes, grid_size)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        logger.warning(
            "Perceptual hash failed for %s payload (%d bytes), skipping visual factor",
            mime_type, len(raw_bytes), exc_info=True,
        )
        return None


def _average_hash(raw_bytes: bytes, grid_size: int) -> str:
    with Image.open(io.BytesIO(raw_bytes)) as img:
        small = img.convert("L").resize((grid_size, grid_size), Image.Resampling.LANCZOS)
        pixels = np.asarray(small, dtype=np.float64)

    bits = (pixels > pixels.mean()).flatten()
    value = 0
    for bit in bits:
        value = (value << 1) | int(bit)
    return f"{value:0{len(bits) // 4}x}"


def hash_bit_length(hash_hex: str | None) -> int:
    """Bit length of a hex hash; DEFAULT_HASH_BITS when absent."""
    if not hash_hex:
        return DEFAULT_HASH_BITS
    return len(hash_hex) * 4


def hamming_distance(hash_a: str | None, hash_b: str | None) -> int:
    """Count differing bits between two hex hashes.

    Missing, non-hex or unequal-length hashes are incomparable and return the
    maximum distance (the bit length), never an error.
    """
    max_distance = hash_bit_length(hash_a or hash_b)
    if not hash_a or not hash_b or len(hash_a) != len(hash_b):
        return max_distance
    try:
        a = int(hash_a, 16)
        b = int(hash_b, 16)
    except ValueError:
        return max_distance
    return bin(a ^ b).count("1")


def hash_similarity(hash_a: str | None, hash_b: str | None) -> tuple[int, float]:
    """Return (distance, 1 - distance/bits) using hash_a's bit length."""
    bits = hash_bit_length(hash_a)
    distance = hamming_distance(hash_a, hash_b)
    return distance, max(0.0, 1.0 - distance / bits)
