from __future__ import annotations

import pytest

from dessem_ingest.domain.builder import EntityCollection, ParseResult
from dessem_ingest.errors import NoParserRegistered
from dessem_ingest.formats import entdados
from dessem_ingest.grammar.fields import place
from dessem_ingest.registry import DetectingParser, FormatRegistry, build_default_registry

EXPECTED_FORMATS = [
    "ENTDADOS",
    "HIDR",
    "TERMDAT",
    "OPERUH",
    "OPERUT",
    "AREACONT",
    "RAMPAS",
    "DADVAZ",
    "DEFLANT",
    "PTOPER",
    "RESPOT",
    "RENOVAVEIS",
    "DESSEMARQ",
]


def _fake_parser(name: str):
    def parse(file_id: str, content: bytes) -> ParseResult:
        return ParseResult(EntityCollection(file_id, name), ())

    return parse


def test_default_registry_knows_every_format() -> None:
    registry = build_default_registry()

    assert registry.known_formats() == EXPECTED_FORMATS
    assert len(registry) == len(EXPECTED_FORMATS)
    assert [name for name, _, _ in registry.describe()] == EXPECTED_FORMATS


@pytest.mark.parametrize(
    ("file_id", "expected"),
    [
        ("entdados.dat", "ENTDADOS"),
        ("ENTDADOS.RV2", "ENTDADOS"),
        ("cases/rv0/hidr.dat", "HIDR"),
        ("OperUH.dat", "OPERUH"),
        ("rampas", "RAMPAS"),
        ("dessem.arq", "DESSEMARQ"),
        ("DADVAZ.DAT", "DADVAZ"),
        ("renovaveis.dat", "RENOVAVEIS"),
    ],
)
def test_lookup_is_case_insensitive_on_base_name(file_id: str, expected: str) -> None:
    entry = build_default_registry().lookup(file_id)

    assert entry is not None
    assert entry.name == expected


def test_unknown_file_is_not_resolved() -> None:
    registry = build_default_registry()

    assert registry.resolve("cortdeco.rv0") is None
    assert registry.lookup("dessem.dat") is None
    assert registry.lookup("entdados_old.dat") is None
    with pytest.raises(NoParserRegistered) as excinfo:
        registry.dispatch("cortdeco.rv0", b"")
    assert excinfo.value.file_id == "cortdeco.rv0"


def test_first_registration_wins() -> None:
    registry = FormatRegistry()
    registry.register(r"special\.dat", _fake_parser("SPECIAL"), name="SPECIAL")
    registry.register(r".*\.dat", _fake_parser("ANY"), name="ANY")

    assert registry.dispatch("special.dat", b"").collection.format == "SPECIAL"
    assert registry.dispatch("other.dat", b"").collection.format == "ANY"


def test_sealed_registry_rejects_registration() -> None:
    registry = build_default_registry()

    with pytest.raises(RuntimeError, match="sealed"):
        registry.register(r"x", _fake_parser("X"), name="X")


def test_duplicate_format_name_is_rejected() -> None:
    registry = FormatRegistry()
    registry.register(r"a", _fake_parser("A"), name="A")

    with pytest.raises(ValueError, match="already registered"):
        registry.register(r"b", _fake_parser("A"), name="A")


def test_detecting_parser_falls_back_to_text() -> None:
    entry = build_default_registry().lookup("hidr.dat")
    parser = entry.parse.__self__

    assert isinstance(parser, DetectingParser)
    assert parser.select(b"& HIDR text registry\n") is parser.text
    assert parser.select(b"") is parser.text


def test_default_registry_dispatches_entdados_lines() -> None:
    tm = place(place("TM", entdados.TM.fields[0], 28), entdados.TM.fields[3], 1.0)
    sist = place(place("SIST", entdados.SIST.fields[0], 1), entdados.SIST.fields[1], "SE")
    content = "\n".join(["& periods", tm, sist]).encode("latin-1")

    result = build_default_registry().dispatch("ENTDADOS.RV0", content)

    assert result.collection.format == "ENTDADOS"
    assert [e.tag for e in result.collection] == ["TM", "SIST"]
    period, system = result.collection.entities
    assert (period.day, period.duration, period.source_line) == (28, 1.0, 2)
    assert (system.number, system.code, system.source_line) == (1, "SE", 3)
    assert result.diagnostics == ()
