"""Box -> iWork conversion -> report pipeline.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from iwork_pipeline import X`` works.
"""

from .conversion import (
    CommandConverter,
    ConversionInvoker,
    create_converter,
    format_for_path,
    output_path_for,
)
from .enrichment import build_header, enrich_output
from .errors import ConversionError, PipelineError, RemoteError, RemoteErrorKind
from .filters import SUPPORTED_EXTENSIONS, extension_of, is_supported, select_candidates
from .models import (
    CandidateFile,
    ConversionOutcome,
    ProcessedFile,
    ProcessingSummary,
    RemoteEntry,
)
from .processor import BatchProcessor
from .report import log_summary, report_path_for, write_report
from .sources import BoxClient
from .utils import (
    BOX_API_URL,
    DEFAULT_TIMEOUT,
    OUTPUT_FORMATS,
    ensure_directories,
    format_rfc3339,
    parse_timestamp,
)

__all__ = [
    # Models
    "RemoteEntry",
    "CandidateFile",
    "ConversionOutcome",
    "ProcessedFile",
    "ProcessingSummary",
    # Errors
    "PipelineError",
    "RemoteError",
    "RemoteErrorKind",
    "ConversionError",
    # Constants
    "BOX_API_URL",
    "DEFAULT_TIMEOUT",
    "OUTPUT_FORMATS",
    "SUPPORTED_EXTENSIONS",
    # Utils
    "ensure_directories",
    "parse_timestamp",
    "format_rfc3339",
    # Sources
    "BoxClient",
    # Filtering
    "extension_of",
    "is_supported",
    "select_candidates",
    # Conversion
    "CommandConverter",
    "ConversionInvoker",
    "create_converter",
    "format_for_path",
    "output_path_for",
    # Enrichment
    "build_header",
    "enrich_output",
    # Orchestration
    "BatchProcessor",
    # Report
    "write_report",
    "report_path_for",
    "log_summary",
]
