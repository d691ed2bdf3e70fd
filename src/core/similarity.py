# src/core/similarity.py — v2
"""String similarity utilities: Levenshtein distance and fuzzy name matching.

The edit-distance table is filled one row at a time with numpy so only two
rows are ever held in memory.
"""

from __future__ import annotations

import numpy as np


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions or substitutions.

    Comparison is case-sensitive; callers lower-case first when needed.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Iterate over the longer string so rows stay short
    if len(a) < len(b):
        a, b = b, a

    b_chars = np.array([ord(c) for c in b], dtype=np.int64)
    previous = np.arange(len(b) + 1, dtype=np.int64)

    for i, ch in enumerate(a, start=1):
        cost = (b_chars != ord(ch)).astype(np.int64)
        current = np.empty_like(previous)
        current[0] = i
        # Substitution and deletion are vectorized; insertion depends on the
        # row being built and is resolved in the scalar pass below.
        current[1:] = np.minimum(previous[:-1] + cost, previous[1:] + 1)
        for j in range(1, len(current)):
            if current[j - 1] + 1 < current[j]:
                current[j] = current[j - 1] + 1
        previous = current

    return int(previous[-1])


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in [0, 1]: 1 - distance / len(longer).

    Two empty strings are identical (1.0).
    """
    a_norm = a.lower()
    b_norm = b.lower()
    longest = max(len(a_norm), len(b_norm))
    if longest == 0:
        return 1.0
    distance = levenshtein_distance(a_norm, b_norm)
    return (longest - distance) / longest


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))
