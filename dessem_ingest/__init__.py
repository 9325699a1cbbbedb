"""
DESSEM ingest - typed, validated loading of DESSEM hydrothermal study inputs.

This package parses the fixed-layout input files of a DESSEM case into frozen,
typed entities and checks their cross references:

- Multi-record line files (ENTDADOS, HIDR text, TERMDAT)
- Block-structured files (OPERUH, OPERUT, AREACONT, RAMPAS)
- The binary fixed-stride HIDR plant registry

Every recoverable problem is reported as a diagnostic alongside the partial
results; only structural problems abort the file they occur in.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from dessem_ingest.config import Settings, get_settings
from dessem_ingest.domain.builder import EntityCollection, ParseResult
from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, Severity
from dessem_ingest.orchestrator import IngestReport, RunConfig, ingest_directory, ingest_files
from dessem_ingest.registry import FormatRegistry, build_default_registry
from dessem_ingest.utils.logging import configure_logging, get_logger
from dessem_ingest.validation import validate

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "IngestReport",
    "RunConfig",
    "ingest_directory",
    "ingest_files",
    # Parsing
    "EntityCollection",
    "FormatRegistry",
    "ParseResult",
    "build_default_registry",
    # Diagnostics and validation
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "validate",
    # Logging
    "configure_logging",
    "get_logger",
]
