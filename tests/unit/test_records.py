from __future__ import annotations

import pytest

from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.formats import entdados
from dessem_ingest.grammar.fields import ABSENT, Present, integer, string
from dessem_ingest.grammar.records import DiscriminatorTable, RecordKind, stage_fields

EXPECTED_STAGE_COLUMNS = ((9, 10), (12, 13), (15, 15))


def _kinds(*tags: str) -> tuple[RecordKind, ...]:
    return tuple(RecordKind(tag, tag, ()) for tag in tags)


def test_longest_discriminator_wins() -> None:
    table = DiscriminatorTable(_kinds("RI", "RIVAR", "RE", "REE"))

    assert table.match("RIVAR  12").name == "RIVAR"
    assert table.match("RI      I").name == "RI"
    assert table.match("REE  1").name == "REE"
    assert table.match("RE   1").name == "RE"
    assert table.lengths == (5, 3, 2)


def test_discriminator_needs_a_boundary() -> None:
    table = DiscriminatorTable(_kinds("TM", "UH"))

    assert table.match("TMX 1") is None
    assert table.match("TM") is not None
    assert table.match("TM\t1") is not None
    assert table.match("uh  1").name == "UH"
    assert table.match("") is None


def test_discriminator_table_rejects_duplicates_and_blanks() -> None:
    with pytest.raises(ValueError, match="duplicate"):
        DiscriminatorTable(_kinds("TM", "tm"))
    with pytest.raises(ValueError, match="empty"):
        DiscriminatorTable(_kinds(""))


def test_entdados_grammar_resolves_shared_prefixes() -> None:
    table = entdados.GRAMMAR.table
    assert table.match("RIVAR   1").name == "RIVAR"
    assert table.match("RI      I").name == "RI"
    assert table.match("REE    1").name == "REE"


def test_stage_fields_layout() -> None:
    day, hour, half = stage_fields("start", 9)

    assert (day.name, hour.name, half.name) == ("start_day", "start_hour", "start_half")
    assert tuple(s.columns.as_tuple() for s in (day, hour, half)) == EXPECTED_STAGE_COLUMNS
    assert day.tokens == ("I", "F")


def test_record_decode_keeps_other_fields_when_one_fails() -> None:
    kind = RecordKind(
        "SIST",
        "SIST",
        (integer("number", 6, 7), string("code", 9, 10), integer("status", 12, 12)),
    )
    diagnostics = DiagnosticCollector("entdados.dat")

    record = kind.decode("SIST XX SE 0", 4, diagnostics)

    assert record.values["number"] is ABSENT
    assert record.values["code"] == Present("SE")
    assert record.get("status") == 0
    assert record.unwrapped() == {"number": None, "code": "SE", "status": 0}
    (warning,) = diagnostics.by_code(DiagnosticCode.COERCION_ERROR)
    assert warning.line == 4
    assert warning.columns == (6, 7)
    assert warning.file_id == "entdados.dat"
    assert not warning.is_error


def test_record_kind_rejects_duplicate_field_names() -> None:
    with pytest.raises(ValueError, match="duplicate field"):
        RecordKind("X", "X", (integer("a", 1, 2), integer("a", 3, 4)))


def test_fields_followed_by_another_field_skip_the_overflow_check() -> None:
    assert entdados.DP.abutting == frozenset({"end_half"})
    assert "demand" not in entdados.DP.abutting

    kind = RecordKind("PAIR", "PAIR", (integer("a", 6, 7), integer("b", 8, 9)))
    diagnostics = DiagnosticCollector("pair.dat")

    record = kind.decode("PAIR 1234", 1, diagnostics)

    assert record.unwrapped() == {"a": 12, "b": 34}
    assert len(diagnostics) == 0


def test_overflowing_field_becomes_absent_with_a_warning() -> None:
    diagnostics = DiagnosticCollector("entdados.dat")

    record = entdados.DP.decode("DP   2  28  1 0  29 15 1   12345.67", 9, diagnostics)

    assert record.values["demand"] is ABSENT
    assert record.get("end_half") == 1
    (warning,) = diagnostics.by_code(DiagnosticCode.COERCION_ERROR)
    assert (warning.line, warning.columns) == (9, (25, 34))
    assert warning.excerpt == "12345.67"


def test_discriminator_may_end_at_a_declared_separator() -> None:
    table = DiscriminatorTable(_kinds("EOLICA", "EOLICASUBM"), separators=";")

    assert table.match("EOLICA;  1 ;").name == "EOLICA"
    assert table.match("EOLICASUBM ;  1 ;SE").name == "EOLICASUBM"
    assert table.match("EOLICA-GERACAO ;") is None
    assert DiscriminatorTable(_kinds("EOLICA")).match("EOLICA;") is None
