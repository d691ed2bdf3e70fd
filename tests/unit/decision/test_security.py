# tests/unit/decision/test_security.py — v1
"""Tests for decision/security.py — upload security flags."""

from __future__ import annotations

from docintel.config.settings import Settings
from docintel.core.models import FileInfo
from docintel.decision.security import collect_security_flags


def _make_file(name: str = "doc.pdf", mime: str = "application/pdf", size: int = 5_000, ext: str = ".pdf") -> FileInfo:
    return FileInfo(original_name=name, mime_type=mime, size=size, extension=ext)


class TestCollectSecurityFlags:
    def test_clean_file(self, settings):
        assert collect_security_flags(b"%PDF-1.7 plain", _make_file(), settings) == []

    def test_oversized(self):
        settings = Settings(_env_file=None, max_upload_mb=1)
        flags = collect_security_flags(b"", _make_file(size=2 * 1024 * 1024), settings)
        assert flags[0].severity == "warning"
        assert flags[0].details["max_size"] == 1024 * 1024
        assert flags[0].suggestion

    def test_executable_by_name(self, settings):
        flags = collect_security_flags(b"MZ", _make_file("setup.EXE", "application/octet-stream", ext=""), settings)
        assert [f.severity for f in flags] == ["error"]

    def test_executable_by_extension_without_dot(self, settings):
        flags = collect_security_flags(b"MZ", _make_file("payload", "application/octet-stream", ext="bat"), settings)
        assert flags[0].message == "Executable file types are not allowed"

    def test_pdf_with_javascript(self, settings):
        flags = collect_security_flags(b"%PDF-1.4 /OpenAction /JavaScript", _make_file(), settings)
        assert flags[0].message == "PDF contains JavaScript - proceed with caution"

    def test_javascript_ignored_for_non_pdf(self, settings):
        flags = collect_security_flags(
            b"/JavaScript", _make_file("a.txt", "text/plain", ext=".txt"), settings
        )
        assert flags == []

    def test_tiny_file_info(self, settings):
        flags = collect_security_flags(b"x", _make_file(size=10), settings)
        assert [f.severity for f in flags] == ["info"]
