from __future__ import annotations

from rich.console import Console

from dessem_ingest.domain.builder import EntityCollection
from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, Severity
from dessem_ingest.domain.models import Subsystem
from dessem_ingest.orchestrator import FILE_FAILED, FILE_PARSED, FileOutcome, _merge_outcomes
from dessem_ingest.reporter import diagnostics_table, print_report

TABLE_LIMIT = 2


def _warning(line: int) -> Diagnostic:
    return Diagnostic(
        file_id="entdados.dat",
        severity=Severity.WARNING,
        code=DiagnosticCode.UNKNOWN_RECORD_TYPE,
        message=f"unknown record at line {line}",
        line=line,
    )


def _report():
    return _merge_outcomes(
        [
            FileOutcome(
                file_id="entdados.dat",
                status=FILE_PARSED,
                format="ENTDADOS",
                collection=EntityCollection("entdados.dat", "ENTDADOS", (Subsystem(number=1),)),
                diagnostics=(_warning(7),),
                profile={"duration_seconds": 0.25, "entities_per_second": 4321.0},
            ),
            FileOutcome(
                file_id="operut.dat",
                status=FILE_FAILED,
                format="OPERUT",
                diagnostics=(
                    Diagnostic(
                        file_id="operut.dat",
                        severity=Severity.ERROR,
                        code=DiagnosticCode.UNTERMINATED_BLOCK,
                        message="block INIT never closed",
                        line=2,
                    ),
                ),
                error="block INIT never closed",
            ),
        ],
        timestamp="2024-01-01T00:00:00+00:00",
    )


def test_print_report_renders_files_and_diagnostics() -> None:
    console = Console(record=True, width=200)

    print_report(_report(), console=console)

    text = console.export_text()
    assert "entdados.dat" in text
    assert "ENTDADOS" in text
    assert "0.250" in text
    assert "4,321" in text
    assert "UnterminatedBlock" in text
    assert "operut.dat:2" in text
    assert "Failed files: operut.dat" in text


def test_print_report_without_files() -> None:
    console = Console(record=True)

    print_report(_merge_outcomes([], timestamp="t"), console=console)

    assert "No files to display." in console.export_text()


def test_diagnostics_table_lists_errors_first_and_truncates() -> None:
    diagnostics = [_warning(1), _warning(2)] + list(_report().errors)

    table = diagnostics_table(diagnostics, limit=TABLE_LIMIT)

    assert table.row_count == TABLE_LIMIT
    assert table.caption == "1 more not shown"
    console = Console(record=True, width=200)
    console.print(table)
    text = console.export_text()
    assert text.index("UnterminatedBlock") < text.index("UnknownRecordType")
