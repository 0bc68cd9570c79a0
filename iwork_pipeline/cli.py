"""CLI entrypoint for the Box -> iWork conversion pipeline.

Usage:
    python -m iwork_pipeline document.pages document.txt
    python -m iwork_pipeline document.pages document.html
    python -m iwork_pipeline --box --token <BOX_TOKEN>
    python -m iwork_pipeline --box --token <BOX_TOKEN> --folder 123456 --format html
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional

from .conversion import create_converter, format_for_path
from .errors import ConversionError, RemoteError
from .models import ProcessingSummary
from .processor import BatchProcessor
from .report import log_summary, write_report
from .sources import BoxClient
from .utils import (
    BOX_API_URL,
    DEFAULT_CONVERTER,
    DEFAULT_FOLDER_ID,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TEMP_DIR,
    DEFAULT_TIMEOUT,
    OUTPUT_FORMATS,
)

log = logging.getLogger(__name__)

EPILOG = """\
Environment variables (used when the matching flag is not given):
    BOX_ACCESS_TOKEN     Box API access token
    BOX_FOLDER_ID        Box folder ID
    OUTPUT_DIR           Output directory
    TEMP_DIR             Temp directory
    BOX_API_URL          Box API base URL
    IWORK_CONVERTER      External converter executable

Examples:
    %(prog)s document.pages document.txt
    %(prog)s --box --token=your_token
    %(prog)s --box --token=your_token --folder=123456 --format=html
"""


@dataclass
class RunConfig:
    """Resolved settings for a Box batch run."""

    token: str
    folder_id: str = DEFAULT_FOLDER_ID
    output_format: str = "txt"
    output_dir: Path = DEFAULT_OUTPUT_DIR
    temp_dir: Path = DEFAULT_TEMP_DIR
    base_url: str = BOX_API_URL
    timeout: float = DEFAULT_TIMEOUT
    converter: str = DEFAULT_CONVERTER


def _setup_logging(
    *,
    verbose: bool,
    detailed_logging: bool,
    output_dir: Path,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    root_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    resolved_log_file = log_file
    if resolved_log_file is None and detailed_logging:
        resolved_log_file = output_dir / "pipeline.log"

    if resolved_log_file is not None:
        resolved_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            resolved_log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iwork-convert",
        description="Convert iWork files (Pages, Numbers, Keynote) to txt or html",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", nargs="?", type=Path, help="iWork file to convert")
    parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        help="Destination file; a .txt suffix selects text, anything else html",
    )

    box = parser.add_argument_group("Box options")
    box.add_argument("--box", action="store_true", help="Process a Box folder")
    box.add_argument("--token", help="Box API access token")
    box.add_argument("--folder", help='Box folder ID (default: "0", the root)')
    box.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="txt",
        help="Output format (default: txt)",
    )
    box.add_argument("--output", dest="output_dir", type=Path, help="Output directory")
    box.add_argument("--temp", dest="temp_dir", type=Path, help="Temp directory")
    box.add_argument("--base-url", help="Box API base URL")
    box.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Per-request HTTP timeout in seconds (default: 30)",
    )

    parser.add_argument(
        "--converter",
        help=f"External iWork converter executable (default: {DEFAULT_CONVERTER})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (file/line, rotating log file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional log file path (default: <output>/pipeline.log in detailed mode)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def resolve_config(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> RunConfig:
    """Merge flags with environment variables; flags win."""
    env = os.environ if environ is None else environ
    return RunConfig(
        token=args.token or env.get("BOX_ACCESS_TOKEN", ""),
        folder_id=args.folder or env.get("BOX_FOLDER_ID") or DEFAULT_FOLDER_ID,
        output_format=args.format,
        output_dir=args.output_dir or Path(env.get("OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        temp_dir=args.temp_dir or Path(env.get("TEMP_DIR") or DEFAULT_TEMP_DIR),
        base_url=args.base_url or env.get("BOX_API_URL") or BOX_API_URL,
        timeout=args.timeout,
        converter=args.converter or env.get("IWORK_CONVERTER") or DEFAULT_CONVERTER,
    )


def run_box(config: RunConfig) -> tuple[ProcessingSummary, Path | None]:
    """Process a Box folder and write the report.

    Setup and listing failures propagate; a report-write failure is logged
    and returned as a ``None`` path.
    """
    client = BoxClient(config.token, base_url=config.base_url, timeout=config.timeout)
    converter = create_converter(config.converter)
    processor = BatchProcessor(
        client,
        converter,
        temp_dir=config.temp_dir,
        output_dir=config.output_dir,
        output_format=config.output_format,
    )

    log.info("Starting Box iWork processing...")
    log.info("  Folder ID:        %s", config.folder_id)
    log.info("  Output format:    %s", config.output_format)
    log.info("  Output directory: %s", config.output_dir)

    summary = processor.process_folder(config.folder_id)

    report_path: Path | None = None
    try:
        report_path = write_report(summary, config.output_dir)
    except (OSError, TypeError, ValueError) as exc:
        log.error("Failed to generate report: %s", exc)
    return summary, report_path


def main(argv: list[str] | None = None) -> None:
    """Run single-file conversion or a Box batch."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.box:
        config = resolve_config(args)
        _setup_logging(
            verbose=args.verbose,
            detailed_logging=args.detailed_logging,
            output_dir=config.output_dir,
            log_file=args.log_file,
        )
        try:
            summary, report_path = run_box(config)
        except RemoteError as exc:
            if exc.unauthorized:
                log.error(
                    "Box access token missing, invalid or expired (%s). "
                    "Pass --token or set BOX_ACCESS_TOKEN.",
                    exc,
                )
            else:
                log.error("Processing failed: failed to list Box folder: %s", exc)
            sys.exit(1)
        except OSError as exc:
            log.error("Failed to setup directories: %s", exc)
            sys.exit(1)

        log_summary(summary, report_path, config.output_dir)
        return

    if args.input is None or args.output is None:
        parser.print_help()
        sys.exit(2)

    _setup_logging(
        verbose=args.verbose,
        detailed_logging=False,
        output_dir=args.output.parent,
        log_file=args.log_file,
    )
    converter = create_converter(
        args.converter or os.environ.get("IWORK_CONVERTER") or DEFAULT_CONVERTER
    )
    try:
        converter.convert(args.input, args.output, format_for_path(args.output))
    except ConversionError as exc:
        log.error("Failed to convert %s: %s", args.input, exc)
        sys.exit(1)
