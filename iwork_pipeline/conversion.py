"""Dispatch of downloaded iWork files to the external converter."""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from .errors import ConversionError
from .models import CandidateFile, ConversionOutcome
from .utils import DEFAULT_CONVERTER, OUTPUT_FORMATS

log = logging.getLogger(__name__)

Delegate = Callable[[Path, Path], None]

OUTPUT_SUFFIXES = {
    "txt": "_extracted.txt",
    "html": "_converted.html",
}

STDERR_TAIL = 500


class CommandConverter:
    """Run an external iWork converter executable as one delegate.

    The executable is invoked as ``command [extra_args...] INPUT OUTPUT`` and
    picks its output format from the OUTPUT suffix.
    """

    def __init__(
        self,
        command: str = DEFAULT_CONVERTER,
        *,
        extra_args: Sequence[str] = (),
        timeout: Optional[float] = 300.0,
    ) -> None:
        self.command = command
        self.extra_args = list(extra_args)
        self.timeout = timeout

    def __call__(self, input_path: Path, output_path: Path) -> None:
        argv = [self.command, *self.extra_args, str(input_path), str(output_path)]
        log.debug("Running converter: %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ConversionError(f"converter not found: {self.command}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ConversionError(
                f"converter timed out after {self.timeout}s"
            ) from exc

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise ConversionError(
                f"converter exited with status {completed.returncode}: "
                f"{detail[-STDERR_TAIL:]}".rstrip(": ")
            )


def create_converter(
    command: str = DEFAULT_CONVERTER,
    *,
    extra_args: Sequence[str] = (),
    timeout: Optional[float] = 300.0,
) -> "ConversionInvoker":
    """Build a ``ConversionInvoker`` backed by one external command.

    Delegates are created here once and reused for the whole run.
    """
    resolved = shutil.which(command)
    if resolved is None:
        log.warning("create_converter: %r not found on PATH", command)
    else:
        log.info("create_converter: using %s", resolved)

    delegate = CommandConverter(command, extra_args=extra_args, timeout=timeout)
    return ConversionInvoker({fmt: delegate for fmt in OUTPUT_FORMATS})


class ConversionInvoker:
    """Map an output format to its converter delegate.

    Holds no parsing logic of its own. The delegates are fixed at
    construction and never rebuilt during a run.
    """

    def __init__(self, delegates: Mapping[str, Delegate]) -> None:
        unknown = set(delegates) - set(OUTPUT_FORMATS)
        if unknown:
            raise ValueError(f"unsupported output formats: {sorted(unknown)}")
        self._delegates = dict(delegates)

    @property
    def formats(self) -> tuple[str, ...]:
        return tuple(self._delegates)

    def convert(
        self, input_path: Path, output_path: Path, output_format: str
    ) -> ConversionOutcome:
        """Convert one file, raising ``ConversionError`` on any failure."""
        delegate = self._delegates.get(output_format)
        if delegate is None:
            raise ConversionError(f"no converter for output format {output_format!r}")

        t0 = time.perf_counter()
        try:
            delegate(input_path, output_path)
        except ConversionError:
            raise
        except Exception as exc:
            raise ConversionError(str(exc) or type(exc).__name__) from exc

        if not output_path.is_file():
            raise ConversionError(f"converter produced no output at {output_path}")

        size = output_path.stat().st_size
        log.info(
            "Converted %s -> %s (%s bytes) in %.2fs",
            input_path.name,
            output_path.name,
            size,
            time.perf_counter() - t0,
        )
        return ConversionOutcome(
            source=input_path.name, output_path=output_path, size_bytes=size
        )

    def try_convert(
        self, input_path: Path, output_path: Path, output_format: str
    ) -> ConversionOutcome:
        """Like ``convert`` but never raises; the error lands in the outcome."""
        try:
            return self.convert(input_path, output_path, output_format)
        except ConversionError as exc:
            log.error("Conversion of %s failed: %s", input_path.name, exc)
            return ConversionOutcome(source=input_path.name, error=str(exc))


# ---------------------------------------------------------------------------
# Output naming
# ---------------------------------------------------------------------------


def format_for_path(output_path: Path) -> str:
    """Infer the output format from a destination filename."""
    return "txt" if output_path.suffix.lower() == ".txt" else "html"


def output_path_for(
    candidate: CandidateFile,
    output_dir: Path,
    output_format: str,
    taken: Optional[set[Path]] = None,
) -> Path:
    """Derive ``<stem>_extracted.txt`` / ``<stem>_converted.html``.

    When *taken* already holds the plain name, the source extension is folded
    into the stem, then a counter is appended until the path is free.
    """
    suffix = OUTPUT_SUFFIXES[output_format]
    path = output_dir / f"{candidate.stem}{suffix}"
    if taken is None or path not in taken:
        return path

    stem = f"{candidate.stem}_{candidate.extension.lstrip('.')}"
    path = output_dir / f"{stem}{suffix}"
    counter = 1
    while path in taken:
        counter += 1
        path = output_dir / f"{stem}_{counter}{suffix}"
    return path
