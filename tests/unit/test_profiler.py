from __future__ import annotations

from dessem_ingest.domain.builder import EntityCollection, ParseResult, UnparsedLine
from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.domain.models import Subsystem
from dessem_ingest.utils.profiler import ParseProfile, profile_parse

EXPECTED_BYTES = 2_000


def _result() -> ParseResult:
    diagnostics = DiagnosticCollector("entdados.dat")
    diagnostics.warn(DiagnosticCode.UNKNOWN_RECORD_TYPE, "unknown", line=3)
    diagnostics.error(DiagnosticCode.REFERENTIAL_INTEGRITY, "dangling", line=4)
    diagnostics.warn(DiagnosticCode.COERCION_ERROR, "bad", line=5)
    collection = EntityCollection(
        "entdados.dat",
        "ENTDADOS",
        (Subsystem(number=1, source_line=1), Subsystem(number=2, source_line=2)),
        (UnparsedLine(3, "XX", "unknown record type"),),
    )
    return ParseResult(collection, diagnostics.snapshot())


def test_profile_counts_what_the_parse_produced() -> None:
    with profile_parse("entdados.dat", enable_tracemalloc=False) as profile:
        profile.record(EXPECTED_BYTES, _result())

    summary = profile.as_dict()
    assert summary["label"] == "entdados.dat"
    assert (summary["bytes_read"], summary["entities"], summary["unparsed"]) == (
        EXPECTED_BYTES,
        2,
        1,
    )
    assert (summary["warnings"], summary["errors"]) == (2, 1)
    assert summary["duration_seconds"] >= 0
    assert summary["peak_rss_bytes"] > 0
    assert summary["peak_traced_bytes"] is None


def test_rates_need_a_measured_duration() -> None:
    profile = ParseProfile("hidr.dat", bytes_read=EXPECTED_BYTES, entities=4)
    assert profile.entities_per_second is None
    assert profile.as_dict()["megabytes_per_second"] is None

    profile.duration_seconds = 2.0
    assert profile.entities_per_second == 2.0
    assert profile.megabytes_per_second == EXPECTED_BYTES / 1_000_000 / 2.0


def test_tracemalloc_peak_is_reported_when_enabled() -> None:
    with profile_parse("operuh.dat") as profile:
        payload = [bytes(1024) for _ in range(8)]
        del payload

    assert profile.peak_traced_bytes is not None
    assert profile.peak_traced_bytes > 0
