from __future__ import annotations

from dessem_ingest.domain.builder import EntityCollection
from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, Severity
from dessem_ingest.domain.models import Subsystem
from dessem_ingest.orchestrator import (
    FILE_FAILED,
    FILE_PARSED,
    FILE_SKIPPED,
    FileOutcome,
    _merge_outcomes,
)

FIXED_TIMESTAMP = "2024-01-01T00:00:00+00:00"
EXPECTED_PEAK_RSS = 1024


def _diagnostic(file_id: str, code: DiagnosticCode, severity: Severity) -> Diagnostic:
    return Diagnostic(file_id=file_id, severity=severity, code=code, message=code.value)


def _outcomes() -> list[FileOutcome]:
    collection = EntityCollection(
        "entdados.dat", "ENTDADOS", (Subsystem(number=1, source_line=1),)
    )
    return [
        FileOutcome(
            file_id="entdados.dat",
            status=FILE_PARSED,
            format="ENTDADOS",
            collection=collection,
            diagnostics=(
                _diagnostic("entdados.dat", DiagnosticCode.COERCION_ERROR, Severity.WARNING),
            ),
            profile={"duration_seconds": 0.01, "peak_rss_bytes": EXPECTED_PEAK_RSS},
        ),
        FileOutcome(file_id="notes.txt", status=FILE_SKIPPED),
        FileOutcome(
            file_id="operut.dat",
            status=FILE_FAILED,
            format="OPERUT",
            diagnostics=(
                _diagnostic("operut.dat", DiagnosticCode.UNTERMINATED_BLOCK, Severity.ERROR),
            ),
            error="block INIT never closed",
            error_type="UnterminatedBlock",
        ),
    ]


def test_merge_keeps_file_order_and_appends_validation() -> None:
    validation = [_diagnostic("hidr.dat", DiagnosticCode.CYCLE_DETECTED, Severity.ERROR)]

    report = _merge_outcomes(_outcomes(), validation, timestamp=FIXED_TIMESTAMP)

    assert [c.file_id for c in report.collections] == ["entdados.dat"]
    assert [d.code for d in report.diagnostics] == [
        DiagnosticCode.COERCION_ERROR,
        DiagnosticCode.UNTERMINATED_BLOCK,
        DiagnosticCode.CYCLE_DETECTED,
    ]
    assert report.failed_files == ("operut.dat",)
    assert report.skipped_files == ("notes.txt",)
    assert [s.status for s in report.files] == [FILE_PARSED, FILE_SKIPPED, FILE_FAILED]
    assert report.timestamp == FIXED_TIMESTAMP


def test_report_severity_views() -> None:
    report = _merge_outcomes(_outcomes(), timestamp=FIXED_TIMESTAMP)

    assert len(report.warnings) == 1
    assert len(report.errors) == 1
    assert report.has_errors is True
    assert report.collection("entdados.dat") is not None
    assert report.collection("operut.dat") is None


def test_warnings_alone_are_not_errors() -> None:
    report = _merge_outcomes(_outcomes()[:2], timestamp=FIXED_TIMESTAMP)

    assert report.has_errors is False


def test_file_summaries_count_entities_and_findings() -> None:
    report = _merge_outcomes(_outcomes(), timestamp=FIXED_TIMESTAMP)

    parsed, skipped, failed = report.files
    assert (parsed.entities, parsed.warnings, parsed.errors) == (1, 1, 0)
    assert parsed.profile["peak_rss_bytes"] == EXPECTED_PEAK_RSS
    assert (skipped.entities, skipped.format) == (0, None)
    assert (failed.errors, failed.error) == (1, "block INIT never closed")


def test_payload_is_json_friendly() -> None:
    report = _merge_outcomes(_outcomes(), timestamp=FIXED_TIMESTAMP)

    payload = report.to_payload()

    assert payload["timestamp"] == FIXED_TIMESTAMP
    assert payload["entities"] == {"entdados.dat": {"SIST": 1}}
    assert payload["failed_files"] == ["operut.dat"]
    assert payload["diagnostics"][1]["code"] == "UnterminatedBlock"
    assert payload["diagnostics"][1]["severity"] == "error"
    assert "collections" not in payload

    detailed = report.to_payload(include_entities=True)
    (entity,) = detailed["collections"]["entdados.dat"]
    assert entity["tag"] == "SIST"
    assert entity["number"] == 1
