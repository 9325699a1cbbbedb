"""
Domain package for DESSEM ingestion.

Exports the diagnostics model and the base entity type shared by readers,
the builder and the validator. Concrete entities live in `models`.
"""

from dessem_ingest.domain.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticCollector,
    Severity,
)
from dessem_ingest.domain.models import Entity

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticCollector",
    "Entity",
    "Severity",
]
