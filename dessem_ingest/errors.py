"""
Exception hierarchy for DESSEM ingestion.

Recoverable problems (`CoercionError`) are caught by the readers and turned
into warnings. Structural problems (`UnterminatedBlock`, `StrideMismatch`)
abort the enclosing file parse and are reported by the orchestrator as a
failed file. `NoParserRegistered` is raised by the registry and handled by
whoever dispatched the file.

Every error carries an `expected` text describing what the reader wanted to
find; it ends up in the `expected` slot of the diagnostic.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Type

from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, Severity


def _rebuild(
    cls: Type["IngestError"], args: Tuple[Any, ...], state: Dict[str, Any]
) -> "IngestError":
    error = cls.__new__(cls)
    Exception.__init__(error, *args)
    error.__dict__.update(state)
    return error


class IngestError(Exception):
    """Base class for every ingestion failure that maps to a diagnostic."""

    code: DiagnosticCode = DiagnosticCode.READ_FAILURE
    severity: Severity = Severity.ERROR
    default_expected: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        file_id: Optional[str] = None,
        line: Optional[int] = None,
        offset: Optional[int] = None,
        expected: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file_id = file_id
        self.line = line
        self.offset = offset
        self.expected = expected or self.default_expected

    def to_diagnostic(self, file_id: Optional[str] = None) -> Diagnostic:
        return Diagnostic(
            file_id=file_id or self.file_id or "<unknown>",
            severity=self.severity,
            code=self.code,
            message=self.message,
            line=self.line,
            offset=self.offset,
            expected=self.expected,
        )

    def __reduce__(self) -> Any:
        # Subclasses take keyword-only arguments; restore state directly.
        return (_rebuild, (type(self), self.args, dict(self.__dict__)))


class CoercionError(IngestError, ValueError):
    """Non-blank field content that does not match its declared kind."""

    code = DiagnosticCode.COERCION_ERROR
    severity = Severity.WARNING

    def __init__(
        self,
        message: str,
        *,
        field: str,
        raw: str,
        expected: str,
        columns: Optional[Tuple[int, int]] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message, line=line, expected=expected)
        self.field = field
        self.raw = raw
        self.columns = columns

    def to_diagnostic(self, file_id: Optional[str] = None) -> Diagnostic:
        return Diagnostic(
            file_id=file_id or self.file_id or "<unknown>",
            severity=self.severity,
            code=self.code,
            message=self.message,
            line=self.line,
            columns=self.columns,
            expected=self.expected,
            excerpt=self.raw,
        )


class UnterminatedBlock(IngestError):
    """End of input reached while a block was still open."""

    code = DiagnosticCode.UNTERMINATED_BLOCK
    default_expected = "block closed by its terminator before end of input"


class StrideMismatch(IngestError):
    """Binary content whose length is not a multiple of the record stride."""

    code = DiagnosticCode.STRIDE_MISMATCH

    def __init__(self, message: str, *, length: int, stride: int, file_id: Optional[str] = None):
        super().__init__(
            message,
            file_id=file_id,
            offset=length - (length % stride),
            expected=f"length multiple of {stride} bytes",
        )
        self.length = length
        self.stride = stride


class NoParserRegistered(IngestError, LookupError):
    """File identifier that matches no registry entry."""

    code = DiagnosticCode.NO_PARSER_REGISTERED
    default_expected = "file name matching a registered format"


__all__ = [
    "IngestError",
    "CoercionError",
    "UnterminatedBlock",
    "StrideMismatch",
    "NoParserRegistered",
]
