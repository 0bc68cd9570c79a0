"""JSON processing report and console summary."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import ProcessingSummary
from .utils import REPORT_PREFIX

log = logging.getLogger(__name__)


def report_path_for(output_dir: Path, completed_at: datetime) -> Path:
    """``<output_dir>/processing_report_YYYYmmdd_HHMMSS.json``."""
    return output_dir / f"{REPORT_PREFIX}_{completed_at:%Y%m%d_%H%M%S}.json"


def write_report(summary: ProcessingSummary, output_dir: Path) -> Path:
    """Write *summary* as JSON and return the report path.

    The filename embeds the run's completion time so earlier reports are kept.
    Raises ``OSError`` (or ``TypeError``/``ValueError`` from serialization).
    """
    completed_at = summary.end_time or datetime.now(timezone.utc)
    path = report_path_for(output_dir, completed_at)
    payload = json.dumps(summary.to_dict(), indent=2, ensure_ascii=False)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(payload)
        fh.write("\n")
    log.info("Generated processing report: %s", path)
    return path


def log_summary(
    summary: ProcessingSummary,
    report_path: Optional[Path] = None,
    output_dir: Optional[Path] = None,
) -> None:
    """Log the human-readable run summary."""
    log.info("=" * 50)
    log.info("PROCESSING SUMMARY")
    log.info("=" * 50)
    log.info(f"  Total files found:      {summary.total_files}")
    log.info(f"  Successfully processed: {summary.successful}")
    log.info(f"  Failed:                 {summary.failed}")
    log.info(f"  Processing time:        {summary.duration:.2f}s")
    if summary.errors:
        log.warning("Errors:")
        for message in summary.errors:
            log.warning(f"  - {message}")
    if report_path is not None:
        log.info(f"  Detailed report:        {report_path}")
    if output_dir is not None:
        log.info(f"  Output files:           {output_dir}")
