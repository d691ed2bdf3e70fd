# src/decision/security.py — v1
"""Basic security and upload-size checks producing decision flags."""

from __future__ import annotations

import logging

from docintel.config.settings import Settings
from docintel.core.models import FileInfo
from docintel.decision.models import DocumentWarning

logger = logging.getLogger(__name__)

_PDF_SCRIPT_MARKERS = (b"/JS", b"/JavaScript")


def collect_security_flags(
    raw_bytes: bytes, file_info: FileInfo, settings: Settings | None = None
) -> list[DocumentWarning]:
    """Flag oversized files, executables, scripted PDFs and near-empty files."""
    settings = settings or Settings()
    flags: list[DocumentWarning] = []

    if file_info.size > settings.max_upload_bytes:
        flags.append(DocumentWarning(
            type="security",
            severity="warning",
            message="File size exceeds recommended limits",
            details={"size": file_info.size, "max_size": settings.max_upload_bytes},
            suggestion="Consider compressing the document or splitting large files",
        ))

    name = file_info.original_name.lower()
    extension = file_info.extension.lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    blocked = tuple(settings.blocked_extensions_list)
    if name.endswith(blocked) or extension in blocked:
        flags.append(DocumentWarning(
            type="security",
            severity="error",
            message="Executable file types are not allowed",
        ))

    if file_info.mime_type == "application/pdf" and any(m in raw_bytes for m in _PDF_SCRIPT_MARKERS):
        flags.append(DocumentWarning(
            type="security",
            severity="warning",
            message="PDF contains JavaScript - proceed with caution",
        ))

    if file_info.size < settings.min_upload_bytes:
        flags.append(DocumentWarning(
            type="security",
            severity="info",
            message="File is very small and may not contain meaningful content",
            details={"size": file_info.size},
        ))

    if flags:
        logger.info(
            "Security checks raised %d flag(s) for %s", len(flags), file_info.original_name
        )
    return flags
