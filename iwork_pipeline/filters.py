"""Selection of the Box entries the pipeline can convert."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Iterable

from .models import CandidateFile, RemoteEntry

SUPPORTED_EXTENSIONS = frozenset(
    {
        ".pages",
        ".numbers",
        ".nmbrs",  # rare Numbers alias
        ".keynote",
        ".key",  # usual Keynote extension
    }
)


def extension_of(name: str) -> str:
    """Lowercase suffix of *name* including the dot, or ``""``."""
    return PurePosixPath(name).suffix.lower()


def is_supported(entry: RemoteEntry) -> bool:
    """True iff *entry* is a file with a supported iWork extension."""
    return entry.kind == "file" and extension_of(entry.name) in SUPPORTED_EXTENSIONS


def select_candidates(entries: Iterable[RemoteEntry]) -> list[CandidateFile]:
    """Keep supported entries in listing order."""
    return [
        CandidateFile(entry=entry, extension=extension_of(entry.name))
        for entry in entries
        if is_supported(entry)
    ]
