# src/main.py — v1
"""CLI entry point — analyze, fingerprint, quick-check commands.

Usage:
    docintel analyze <file> --context expense_receipt [--catalog docs.json]
    docintel fingerprint <file>
    docintel quick-check <file> [--catalog docs.json]

Results are printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from docintel.core.models import DOCUMENT_CONTEXTS, FileInfo
from docintel.version import __version__

logger = logging.getLogger(__name__)

EXIT_REJECTED = 2

_MIME_MAP = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".txt": "text/plain",
    ".csv": "text/csv",
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docintel",
        description=f"docintel v{__version__} — document duplicate and relevance checks",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Run full duplicate and relevance analysis",
    )
    p_analyze.add_argument("file", type=Path, help="Path to document")
    p_analyze.add_argument(
        "-c", "--context", choices=DOCUMENT_CONTEXTS, default="generic_business",
        help="Upload context (default: generic_business)",
    )
    _add_catalog_arguments(p_analyze)
    p_analyze.add_argument(
        "--text-file", type=Path, default=None,
        help="Pre-extracted text (OCR output) for the document",
    )
    p_analyze.add_argument(
        "--mime-type", default=None,
        help="MIME type (guessed from extension if omitted)",
    )
    p_analyze.add_argument(
        "--strict", action="store_true",
        help="Strict relevance scoring",
    )
    p_analyze.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the JSON report here instead of stdout",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- fingerprint ---
    p_fp = subparsers.add_parser(
        "fingerprint", help="Print checksum and perceptual hash",
    )
    p_fp.add_argument("file", type=Path, help="Path to document")
    p_fp.add_argument("--mime-type", default=None, help="MIME type override")
    p_fp.set_defaults(func=_cmd_fingerprint)

    # --- quick-check ---
    p_quick = subparsers.add_parser(
        "quick-check", help="Pre-upload size, type and exact-duplicate check",
    )
    p_quick.add_argument("file", type=Path, help="Path to document")
    p_quick.add_argument("--mime-type", default=None, help="MIME type override")
    _add_catalog_arguments(p_quick)
    p_quick.set_defaults(func=_cmd_quick_check)

    return parser


def _add_catalog_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--catalog", type=Path, default=None,
        help="JSON file of existing documents to compare against",
    )
    parser.add_argument("--company", default="", help="Company ID of the uploader")
    parser.add_argument("--user", default="", help="User ID of the uploader")


def _cmd_analyze(args: argparse.Namespace) -> int:
    """Execute full analysis of a single document."""
    from docintel.api.facade import analyze_document
    from docintel.api.models import AnalysisOptions, ConfigOverrides
    from docintel.extraction.text_provider import PlainTextExtractor

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    data = file_path.read_bytes()
    file_info = _file_info(file_path, data, args.mime_type)
    text = args.text_file.read_text(encoding="utf-8") if args.text_file else None

    options = AnalysisOptions(
        company_id=args.company,
        user_id=args.user,
        config_overrides=ConfigOverrides(strict_relevance=True) if args.strict else None,
    )

    logger.info("Analyzing %s (%s, context=%s)", file_path.name, file_info.mime_type, args.context)
    report = analyze_document(
        data,
        file_info,
        args.context,
        options=options,
        text=text,
        text_extractor=PlainTextExtractor(),
        catalog=_open_catalog(args.catalog),
    )

    payload = report.model_dump_json(indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        logger.info("Report written to %s", args.output)
    else:
        print(payload)

    return EXIT_REJECTED if report.decision.recommendation == "reject" else 0


def _cmd_fingerprint(args: argparse.Namespace) -> int:
    """Print the fingerprint of a document."""
    from docintel.config.settings import Settings
    from docintel.fingerprint.builder import compute_fingerprint

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    data = file_path.read_bytes()
    mime_type = args.mime_type or _guess_mime_type(file_path)
    fingerprint = compute_fingerprint(data, mime_type, Settings().perceptual_grid_size)
    print(fingerprint.model_dump_json(indent=2))
    return 0


def _cmd_quick_check(args: argparse.Namespace) -> int:
    """Execute the pre-upload quick check."""
    from docintel.api.facade import quick_check

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    data = file_path.read_bytes()
    result = quick_check(
        data,
        _file_info(file_path, data, args.mime_type),
        catalog=_open_catalog(args.catalog),
        company_id=args.company,
        user_id=args.user,
    )
    print(result.model_dump_json(indent=2))
    return 0 if result.can_upload else EXIT_REJECTED


def _guess_mime_type(path: Path) -> str:
    """Map a file extension to its MIME type."""
    return _MIME_MAP.get(path.suffix.lower(), "application/octet-stream")


def _file_info(path: Path, data: bytes, mime_type: str | None) -> FileInfo:
    return FileInfo(
        original_name=path.name,
        mime_type=mime_type or _guess_mime_type(path),
        size=len(data),
        extension=path.suffix.lower(),
    )


def _open_catalog(path: Path | None):
    if path is None:
        return None
    from docintel.catalog.json_catalog import JsonCandidateCatalog

    return JsonCandidateCatalog(path)


def _setup_logging(verbose: bool) -> None:
    """Configure text logging to stderr for CLI usage."""
    from docintel.config.settings import Settings
    from docintel.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text",
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
