# src/extraction/structure_detector.py — v3
"""Detect document layout cues from extracted text: tables, header, footer, signature, logo.

Text-only heuristics; no page geometry is available at this point.
"""

from __future__ import annotations

import re

from docintel.core.models import DocumentStructureFlags

_MIN_TABLE_LINES = 3
_WIDE_GAP = re.compile(r"\s{3,}")

_HEADER_MARKERS = ("from:", "to:", "invoice")
_FOOTER_MARKERS = ("thank you", "terms", "payment")
_SIGNATURE_MARKERS = ("signature", "signed")
_LOGO_MARKERS = ("®", "™")


def detect_structure(text: str) -> DocumentStructureFlags:
    """Analyze text to detect structural elements."""
    lower = text.lower()
    return DocumentStructureFlags(
        has_table=_detect_table(text),
        has_header=any(m in lower for m in _HEADER_MARKERS),
        has_footer=any(m in lower for m in _FOOTER_MARKERS),
        has_signature=any(m in lower for m in _SIGNATURE_MARKERS),
        has_logo="logo" in lower or any(m in text for m in _LOGO_MARKERS),
    )


def _detect_table(text: str) -> bool:
    """At least three lines that look like columns (pipes, tabs, or wide gaps)."""
    table_lines = 0
    for line in text.split("\n"):
        if "|" in line or "\t" in line or len(_WIDE_GAP.findall(line)) >= 2:
            table_lines += 1
            if table_lines >= _MIN_TABLE_LINES:
                return True
    return False
