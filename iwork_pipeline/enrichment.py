"""Provenance header for text output."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import CandidateFile
from .utils import SEPARATOR_WIDTH, format_rfc3339

log = logging.getLogger(__name__)


def build_header(candidate: CandidateFile, extracted_at: datetime) -> str:
    """Return the six header lines, the separator line and a blank line."""
    lines = [
        f"# Extracted from: {candidate.name}",
        f"# File ID: {candidate.id}",
        f"# Size: {candidate.size} bytes",
        f"# Modified: {format_rfc3339(candidate.modified_at)}",
        f"# Extracted: {format_rfc3339(extracted_at)}",
        f"# Extension: {candidate.extension}",
        "-" * SEPARATOR_WIDTH,
        "",
    ]
    return "\n".join(lines) + "\n"


def enrich_output(
    converted_path: Path,
    candidate: CandidateFile,
    output_format: str,
    *,
    now: Optional[datetime] = None,
) -> Path:
    """Prepend the provenance header to text output, in place.

    HTML output is left untouched. Raises ``OSError`` on read/write failure.
    """
    if output_format != "txt":
        return converted_path

    content = converted_path.read_bytes()
    header = build_header(candidate, now or datetime.now(timezone.utc))
    converted_path.write_bytes(header.encode("utf-8") + content)

    log.info("Enhanced %s with metadata", converted_path)
    return converted_path
