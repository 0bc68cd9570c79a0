"""Sequential download -> convert -> enrich -> record loop over a Box folder."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .conversion import ConversionInvoker, output_path_for
from .enrichment import enrich_output
from .errors import ConversionError, RemoteError
from .models import CandidateFile, ProcessedFile, ProcessingSummary
from .sources import BoxClient
from .utils import OUTPUT_FORMATS, ensure_directories, remove_quietly

log = logging.getLogger(__name__)


class BatchProcessor:
    """Drive one batch run over the iWork files of a Box folder.

    Candidates are processed one at a time, in listing order. A failure is
    terminal for that candidate only; the scratch copy is deleted before the
    next candidate starts, whatever the outcome.
    """

    def __init__(
        self,
        client: BoxClient,
        converter: ConversionInvoker,
        *,
        temp_dir: Path,
        output_dir: Path,
        output_format: str = "txt",
        show_progress: bool = True,
    ) -> None:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"invalid format {output_format!r}; must be one of {OUTPUT_FORMATS}"
            )
        self.client = client
        self.converter = converter
        self.temp_dir = Path(temp_dir)
        self.output_dir = Path(output_dir)
        self.output_format = output_format
        self.show_progress = show_progress

    def process_folder(self, folder_id: str) -> ProcessingSummary:
        """Process every candidate in *folder_id* and return the summary.

        Raises ``OSError`` if the scratch/output directories cannot be created
        and ``RemoteError`` if the folder cannot be listed; both happen before
        any candidate is touched.
        """
        summary = ProcessingSummary()
        ensure_directories(self.temp_dir, self.output_dir)

        candidates = self.client.list_candidates(folder_id)
        summary.total_files = len(candidates)

        if not candidates:
            log.warning("No iWork files found to process")
            summary.finish()
            return summary

        taken: set[Path] = set()
        iterable = tqdm(
            candidates, desc="Processing", unit="file", disable=not self.show_progress
        )
        for candidate in iterable:
            self.process_candidate(candidate, summary, taken)

        summary.finish()
        log.info(
            "Run complete: %s succeeded, %s failed (%.2fs)",
            summary.successful,
            summary.failed,
            summary.duration,
        )
        return summary

    def process_candidate(
        self,
        candidate: CandidateFile,
        summary: ProcessingSummary,
        taken: Optional[set[Path]] = None,
    ) -> None:
        """Run one candidate through every stage, recording exactly one outcome."""
        log.info("Processing %s...", candidate.name)
        t0 = time.perf_counter()
        scratch = self.temp_dir / Path(candidate.name).name

        try:
            self.client.download(candidate.id, scratch)
        except RemoteError as exc:
            summary.record_failure(f"Failed to download {candidate.name}: {exc}")
            return

        try:
            output_path = output_path_for(
                candidate, self.output_dir, self.output_format, taken
            )
            try:
                outcome = self.converter.convert(
                    scratch, output_path, self.output_format
                )
            except ConversionError as exc:
                summary.record_failure(f"Failed to convert {candidate.name}: {exc}")
                return
            if taken is not None:
                taken.add(output_path)

            try:
                final_path = enrich_output(
                    outcome.output_path, candidate, self.output_format
                )
            except OSError as exc:
                summary.record_failure(
                    f"Failed to save enhanced file for {candidate.name}: {exc}"
                )
                return

            summary.record_success(
                ProcessedFile(
                    original_file=candidate.name,
                    output_path=str(final_path),
                    file_size=candidate.size,
                    process_time=round(time.perf_counter() - t0, 3),
                )
            )
        finally:
            self._cleanup(scratch)

    def _cleanup(self, scratch: Path) -> None:
        try:
            if remove_quietly(scratch):
                log.debug("Removed scratch file %s", scratch)
        except OSError as exc:
            log.warning("Could not remove scratch file %s: %s", scratch, exc)
