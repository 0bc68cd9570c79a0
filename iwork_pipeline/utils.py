"""Cross-cutting helpers: constants, directory setup, timestamp formatting."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BOX_API_URL = "https://api.box.com/2.0"
DEFAULT_FOLDER_ID = "0"
DEFAULT_TIMEOUT = 30.0
DEFAULT_OUTPUT_DIR = Path("extracted")
DEFAULT_TEMP_DIR = Path("temp")
DEFAULT_CONVERTER = "iwork-converter"
OUTPUT_FORMATS = ("txt", "html")
REPORT_PREFIX = "processing_report"
SEPARATOR_WIDTH = 50


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def ensure_directories(*dirs: Path) -> tuple[Path, ...]:
    """Create each directory (and parents) and return them unchanged.

    Raises ``OSError`` if any of them cannot be created.
    """
    for directory in dirs:
        directory.mkdir(parents=True, exist_ok=True)
    return dirs


def remove_quietly(path: Optional[Path]) -> bool:
    """Delete *path* if it exists. Returns True when a file was removed."""
    if path is None:
        return False
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a Box ISO-8601 timestamp; ``None``/empty stays ``None``."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def format_rfc3339(value: Optional[datetime]) -> str:
    """Render *value* as RFC 3339 with second precision (``Z`` for UTC)."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text
