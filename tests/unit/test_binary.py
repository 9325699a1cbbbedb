from __future__ import annotations

import struct

import pytest

from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.domain.models import HydroPlantRecord
from dessem_ingest.errors import StrideMismatch
from dessem_ingest.formats import hidr
from dessem_ingest.registry import build_default_registry
from dessem_ingest.strategies.binary import BinaryField, BinaryLayout, BinaryParser, BinaryReader
from dessem_ingest.strategies.multi_record import MultiRecordParser

RECORD_SIZE = 792
EXPECTED_RECORDS = 2
RESERVED_START = 196
RESERVED_END = 496


def _record(name: str, posto: int, downstream: int = 0, **values) -> bytes:
    layout = hidr.binary_layout()
    return layout.encode({"name": name, "posto": posto, "downstream": downstream, **values})


def test_layout_matches_record_size() -> None:
    layout = hidr.binary_layout()
    assert layout.stride == RECORD_SIZE
    assert len(_record("FURNAS", 1)) == RECORD_SIZE


def test_fields_decode_at_absolute_offsets() -> None:
    buffer = bytearray(RECORD_SIZE)
    buffer[0:12] = b"FURNAS      "
    struct.pack_into("<i", buffer, 12, 77)
    struct.pack_into("<i", buffer, 32, 12)
    struct.pack_into("<ff", buffer, 40, 5733.0, 22950.0)
    struct.pack_into("<5f", buffer, 496, 90.0, 0.0, 0.0, 0.0, 0.0)
    buffer[791:792] = b"D"

    values = hidr.binary_layout().decode(bytes(buffer), 0)

    assert values["name"] == "FURNAS"
    assert values["posto"] == 77
    assert values["downstream"] == 12
    assert values["min_volume"] == 5733.0
    assert values["max_volume"] == 22950.0
    assert values["nominal_head"] == (90.0, 0.0, 0.0, 0.0, 0.0)
    assert values["regulation"] == "D"


def test_zero_references_decode_as_none() -> None:
    values = hidr.binary_layout().decode(_record("FURNAS", 1, downstream=0), 0)

    assert values["downstream"] is None
    assert values["diversion"] is None


def test_reserved_bytes_are_kept_verbatim() -> None:
    raw = bytearray(_record("FURNAS", 1))
    raw[RESERVED_START:RESERVED_END] = bytes(range(256)) + bytes(44)

    values = hidr.binary_layout().decode(bytes(raw), 0)

    assert values["reserved"] == bytes(raw[RESERVED_START:RESERVED_END])


def test_detect_requires_exact_multiple_and_plausible_posto() -> None:
    reader = BinaryReader(hidr.binary_layout())
    data = _record("FURNAS", 1) + _record("ESTREITO", 2)

    assert reader.detect(data) is True
    assert reader.detect(b"") is False
    assert reader.detect(data[:-1]) is False
    assert reader.detect(_record("EMPTY", 0)) is False
    assert reader.detect(_record("FURNAS", 10_000)) is False


def test_detect_honours_configured_range() -> None:
    reader = BinaryReader(hidr.binary_layout(posto_range=(100, 200)))

    assert reader.detect(_record("A", 150)) is True
    assert reader.detect(_record("A", 50)) is False


def test_read_rejects_partial_record() -> None:
    reader = BinaryReader(hidr.binary_layout())
    data = _record("FURNAS", 1) + b"\x00"

    with pytest.raises(StrideMismatch) as excinfo:
        reader.read(data, DiagnosticCollector("hidr.dat"))

    error = excinfo.value
    assert error.length == RECORD_SIZE + 1
    assert error.stride == RECORD_SIZE
    assert error.file_id == "hidr.dat"
    diagnostic = error.to_diagnostic()
    assert diagnostic.code is DiagnosticCode.STRIDE_MISMATCH
    assert diagnostic.offset == RECORD_SIZE
    assert diagnostic.location() == f"hidr.dat@{RECORD_SIZE}"


def test_parser_numbers_records_from_one() -> None:
    data = _record("FURNAS", 1, downstream=2) + _record("ESTREITO", 2)

    result = BinaryParser(hidr.binary_layout()).parse("hidr.dat", data)

    first, second = result.collection.entities
    assert isinstance(first, HydroPlantRecord)
    assert (first.index, first.source_line, first.name, first.downstream) == (1, 1, "FURNAS", 2)
    assert (second.index, second.name, second.downstream) == (2, "ESTREITO", None)
    assert result.collection.format == "HIDR"
    assert result.diagnostics == ()


def test_binary_content_is_routed_to_binary_reader() -> None:
    data = _record("FURNAS", 1, downstream=2) + _record("ESTREITO", 2)

    result = build_default_registry().dispatch("HIDR.DAT", data)

    assert result.collection.summary() == {"HIDR": EXPECTED_RECORDS}
    # The same bytes read as text yield no entity.
    as_text = MultiRecordParser(hidr.TEXT_GRAMMAR).parse("HIDR.DAT", data)
    assert len(as_text.collection) == 0


def test_layout_rejects_fields_beyond_stride() -> None:
    with pytest.raises(ValueError, match="exceeds"):
        BinaryLayout(
            name="BAD",
            stride=8,
            fields=(BinaryField("value", 6, "i"),),
            entity=HydroPlantRecord,
            validity_field="value",
            validity_range=(1, 10),
        )
