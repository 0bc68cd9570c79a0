"""Shared data models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class RemoteEntry:
    """Snapshot of one item in a Box folder listing."""

    id: str
    name: str
    kind: str = "file"
    size: int = 0
    modified_at: Optional[datetime] = None


@dataclass(frozen=True)
class CandidateFile:
    """A remote entry whose extension is in the supported set."""

    entry: RemoteEntry
    extension: str

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def size(self) -> int:
        return self.entry.size

    @property
    def modified_at(self) -> Optional[datetime]:
        return self.entry.modified_at

    @property
    def stem(self) -> str:
        return Path(self.entry.name).stem


@dataclass
class ConversionOutcome:
    """Result of handing one local file to a converter delegate."""

    source: str
    output_path: Optional[Path] = None
    size_bytes: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.output_path is not None and self.error is None


@dataclass
class ProcessedFile:
    """Tracks one successfully converted file."""

    original_file: str
    output_path: str
    file_size: int
    process_time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_file": self.original_file,
            "output_path": self.output_path,
            "file_size": self.file_size,
            "process_time": self.process_time,
        }


@dataclass
class ProcessingSummary:
    """Aggregate outcome of one batch run.

    Mutated only by the batch processor while a run is in progress;
    ``finish`` stamps the end time once every candidate has been handled.
    """

    total_files: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    processed_files: list[ProcessedFile] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> float:
        end = self.end_time or datetime.now(timezone.utc)
        return (end - self.start_time).total_seconds()

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    def record_success(self, processed: ProcessedFile) -> None:
        self.successful += 1
        self.processed_files.append(processed)

    def record_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)

    def finish(self, end_time: Optional[datetime] = None) -> None:
        self.end_time = end_time or datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_files": self.total_files,
            "successful": self.successful,
            "failed": self.failed,
            "errors": list(self.errors),
            "processed_files": [p.to_dict() for p in self.processed_files],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": round(self.duration, 3),
        }
