from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.domain.models import Entity
from dessem_ingest.formats import entdados
from dessem_ingest.grammar.fields import date_field, integer, place, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind
from dessem_ingest.strategies.multi_record import MultiRecordParser, MultiRecordReader

SAMPLE_LINES = "TM 001 010125 0000\nSIST 1  SE\n"
EXPECTED_RECORDS = 2


class _Period(Entity):
    tag: ClassVar[str] = "TM"

    code: Optional[int] = None
    start: Optional[date] = None
    time: Optional[int] = None


class _System(Entity):
    tag: ClassVar[str] = "SIST"

    number: Optional[int] = None
    code: Optional[str] = None


TM = RecordKind(
    "TM",
    "TM",
    (
        integer("code", 4, 6),
        date_field("start", day=(8, 9), month=(10, 11), year=(12, 13)),
        integer("time", 15, 18),
    ),
    _Period,
)
SIST = RecordKind("SIST", "SIST", (integer("number", 6, 6), string("code", 9, 10)), _System)
GRAMMAR = LineGrammar("SAMPLE", (TM, SIST), comment_prefixes=("&",), end_markers=("FIM",))


def test_reader_types_every_field_in_file_order() -> None:
    batch = MultiRecordReader(GRAMMAR).read(SAMPLE_LINES.splitlines(), DiagnosticCollector("x"))

    assert [r.kind.name for r in batch.ordered] == ["TM", "SIST"]
    (tm,) = batch.records["TM"]
    assert tm.unwrapped() == {"code": 1, "start": date(2025, 1, 1), "time": 0}
    (sist,) = batch.records["SIST"]
    assert sist.unwrapped() == {"number": 1, "code": "SE"}
    assert sist.line_no == 2


def test_parser_builds_entities() -> None:
    result = MultiRecordParser(GRAMMAR).parse("sample.dat", SAMPLE_LINES.encode("latin-1"))

    collection = result.collection
    assert len(collection) == EXPECTED_RECORDS
    assert collection.format == "SAMPLE"
    assert collection.of_kind("TM")[0].start == date(2025, 1, 1)
    assert collection.of_kind(_System)[0].code == "SE"
    assert collection.of_kind("SIST")[0].source_line == 2
    assert result.diagnostics == ()


def test_unknown_record_is_a_warning_and_kept_unparsed() -> None:
    content = "& header\n\nTM 001 010125 0000\nXYZ 12\nSIST 2  S\n"

    result = MultiRecordParser(GRAMMAR).parse("sample.dat", content)

    assert result.collection.summary() == {"TM": 1, "SIST": 1}
    (unparsed,) = result.collection.unparsed
    assert unparsed.line == 4
    assert unparsed.raw == "XYZ 12"
    (warning,) = result.diagnostics
    assert warning.code is DiagnosticCode.UNKNOWN_RECORD_TYPE
    assert warning.line == 4
    assert warning.excerpt == "XYZ 12"
    assert not warning.is_error


def test_end_marker_stops_reading() -> None:
    content = "SIST 1  SE\nFIM\nSIST 2  S\n"

    result = MultiRecordParser(GRAMMAR).parse("sample.dat", content)

    assert [e.number for e in result.collection] == [1]


def test_bad_field_still_yields_the_entity() -> None:
    result = MultiRecordParser(GRAMMAR).parse("sample.dat", "SIST X  SE\n")

    (system,) = result.collection.entities
    assert system.number is None
    assert system.code == "SE"
    (warning,) = result.diagnostics
    assert warning.code is DiagnosticCode.COERCION_ERROR
    assert warning.columns == (6, 6)


def test_entdados_shared_prefix_records() -> None:
    ri = place(place("RI", entdados.RI.fields[0], "I"), entdados.RI.fields[3], "F")
    ri = place(ri, entdados.RI.fields[7], 7000.0)
    rivar = place(place("RIVAR", entdados.RIVAR.fields[0], 66), entdados.RIVAR.fields[3], 2.5)
    content = "\n".join([ri, rivar, "REE    1  1 SUDESTE"])

    result = MultiRecordParser(entdados.GRAMMAR).parse("entdados.dat", content)

    assert result.collection.summary() == {"RI": 1, "RIVAR": 1, "REE": 1}
    restriction = result.collection.of_kind("RI")[0]
    assert restriction.start_day == "I"
    assert restriction.end_day == "F"
    assert restriction.gen_max_50 == 7000.0
    variation = result.collection.of_kind("RIVAR")[0]
    assert variation.entity_code == 66
    assert variation.penalty == 2.5
    reservoir = result.collection.of_kind("REE")[0]
    assert (reservoir.ree, reservoir.subsystem, reservoir.name) == (1, 1, "SUDESTE")


def test_demand_wider_than_its_columns_is_not_truncated() -> None:
    result = MultiRecordParser(entdados.GRAMMAR).parse(
        "entdados.dat", "DP   2  28  1 0  29 15 1   12345.67\n"
    )

    (demand,) = result.collection.entities
    assert demand.subsystem == 2
    assert demand.demand is None
    (warning,) = result.diagnostics
    assert warning.code is DiagnosticCode.COERCION_ERROR
    assert warning.columns == (25, 34)
    assert "runs past column 34" in warning.message
