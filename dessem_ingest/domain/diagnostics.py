"""
Diagnostics model and collector for DESSEM ingestion.

Every recoverable problem found while parsing or validating a case becomes a
`Diagnostic`: an immutable record carrying the file identity, the position
(line number or byte offset, plus the column range for field-level issues),
a severity, a machine-friendly code and the expected format. Diagnostics are
returned alongside partial results, never instead of them.

Usage:
    from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector

    collector = DiagnosticCollector("entdados.dat")
    collector.warn(DiagnosticCode.UNKNOWN_RECORD_TYPE, "unknown record 'XX'", line=12)
    diagnostics = collector.snapshot()
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(str, Enum):
    """Machine-friendly identifiers for every diagnostic the pipeline emits."""

    COERCION_ERROR = "CoercionError"
    UNKNOWN_RECORD_TYPE = "UnknownRecordType"
    UNKNOWN_SUB_RECORD = "UnknownSubRecord"
    UNTERMINATED_BLOCK = "UnterminatedBlock"
    STRIDE_MISMATCH = "StrideMismatch"
    NO_PARSER_REGISTERED = "NoParserRegistered"
    READ_FAILURE = "ReadFailure"
    REFERENTIAL_INTEGRITY = "ReferentialIntegrity"
    CYCLE_DETECTED = "CycleDetected"
    DUPLICATE_KEY = "DuplicateKey"
    RANGE_VIOLATION = "RangeViolation"


class Diagnostic(BaseModel):
    """
    A single parse or validation finding.

    `line` is used by text formats and `offset` by binary ones; `columns` is
    the 1-based inclusive column range of the offending field when known.
    """

    file_id: str = Field(..., description="File identifier the finding belongs to.")
    severity: Severity
    code: DiagnosticCode
    message: str
    line: Optional[int] = Field(None, description="1-based line number (text formats).")
    offset: Optional[int] = Field(None, description="Byte offset (binary formats).")
    columns: Optional[Tuple[int, int]] = Field(None, description="1-based inclusive range.")
    expected: Optional[str] = Field(None, description="Human-readable expected format.")
    excerpt: Optional[str] = Field(None, description="Raw source excerpt.")

    model_config = {
        "frozen": True,
        "use_enum_values": False,
    }

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def location(self) -> str:
        """Render `file:line[:cols]` or `file@offset` for reports."""
        if self.offset is not None:
            return f"{self.file_id}@{self.offset}"
        where = self.file_id
        if self.line is not None:
            where = f"{where}:{self.line}"
        if self.columns is not None:
            where = f"{where}:{self.columns[0]}-{self.columns[1]}"
        return where


class DiagnosticCollector:
    """
    Append-only, thread-safe accumulator of diagnostics.

    A collector is usually owned by one parse pass, but appends are guarded by
    a lock so a single collector can also be shared by concurrent tasks.
    """

    def __init__(self, file_id: str = "<run>") -> None:
        self.file_id = file_id
        self._items: List[Diagnostic] = []
        self._lock = threading.Lock()

    def add(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._items.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        batch = list(diagnostics)
        with self._lock:
            self._items.extend(batch)

    def record(
        self,
        severity: Severity,
        code: DiagnosticCode,
        message: str,
        **context: Any,
    ) -> Diagnostic:
        context.setdefault("file_id", self.file_id)
        diagnostic = Diagnostic(severity=severity, code=code, message=message, **context)
        self.add(diagnostic)
        return diagnostic

    def warn(self, code: DiagnosticCode, message: str, **context: Any) -> Diagnostic:
        return self.record(Severity.WARNING, code, message, **context)

    def error(self, code: DiagnosticCode, message: str, **context: Any) -> Diagnostic:
        return self.record(Severity.ERROR, code, message, **context)

    def snapshot(self) -> Tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(self._items)

    def by_severity(self, severity: Severity) -> List[Diagnostic]:
        return [d for d in self.snapshot() if d.severity is severity]

    def by_code(self, code: DiagnosticCode) -> List[Diagnostic]:
        return [d for d in self.snapshot() if d.code is code]

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.snapshot())


__all__ = ["Severity", "DiagnosticCode", "Diagnostic", "DiagnosticCollector"]
