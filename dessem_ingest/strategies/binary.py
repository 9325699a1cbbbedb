"""
Binary fixed-stride reader.

The binary plant registry is a sequence of equally sized records. Every field
sits at a fixed absolute offset inside its record and is decoded with
`struct`; there is no scanning and no delimiter search. Byte ranges without a
documented meaning are kept as raw bytes on the entity.

`BinaryReader.detect` is the heuristic the registry uses to tell a binary
file from a text one sharing the same name: the length must be a non-zero
exact multiple of the stride AND the first record's validity field must fall
inside its plausible range.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Type

from dessem_ingest.domain.builder import EntityBuilder, ParseResult
from dessem_ingest.domain.diagnostics import DiagnosticCollector
from dessem_ingest.domain.models import Entity
from dessem_ingest.errors import StrideMismatch
from dessem_ingest.strategies.abstract import AbstractFileParser, Content
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class BinaryField:
    """
    One field at an absolute offset inside a record.

    `code` is a `struct` code (``i``, ``q``, ``f``, ``s``...). Character
    blocks use ``s`` with `count` bytes and decode to stripped text; other
    codes with `count > 1` decode to a tuple.
    """

    name: str
    offset: int
    code: str
    count: int = 1

    @property
    def fmt(self) -> str:
        return f"{self.count}{self.code}" if self.count > 1 or self.code == "s" else self.code


@dataclass(frozen=True)
class OpaqueRange:
    """Undocumented bytes [start, end) kept verbatim under `name`."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class BinaryLayout:
    """
    Offset table of a fixed-stride binary format.

    Attributes
    ----------
    stride : int
        Size in bytes of every record.
    validity_field : str
        Field whose value on the first record drives format detection.
    validity_range : tuple[int, int]
        Inclusive plausible range of the validity field.
    zero_as_none : tuple[str, ...]
        Reference fields where zero means "no reference".
    index_field : str | None
        Entity field receiving the 1-based record index.
    """

    name: str
    stride: int
    fields: Tuple[BinaryField, ...]
    entity: Type[Entity]
    validity_field: str
    validity_range: Tuple[int, int]
    opaque: Tuple[OpaqueRange, ...] = ()
    zero_as_none: Tuple[str, ...] = ()
    index_field: Optional[str] = "index"
    byte_order: str = "<"
    text_encoding: str = "latin-1"
    _structs: Tuple[struct.Struct, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        structs = tuple(struct.Struct(self.byte_order + f.fmt) for f in self.fields)
        for spec, compiled in zip(self.fields, structs):
            if spec.offset < 0 or spec.offset + compiled.size > self.stride:
                raise ValueError(f"field {spec.name!r} exceeds the {self.stride}-byte stride")
        for chunk in self.opaque:
            if not 0 <= chunk.start < chunk.end <= self.stride:
                raise ValueError(f"opaque range {chunk.name!r} exceeds the stride")
        if self.validity_field not in {f.name for f in self.fields}:
            raise ValueError(f"unknown validity field {self.validity_field!r}")
        object.__setattr__(self, "_structs", structs)

    def _text(self, raw: bytes) -> Optional[str]:
        text = raw.decode(self.text_encoding).replace("\x00", " ").strip()
        return text or None

    def decode_field(self, data: bytes, base: int, name: str) -> Any:
        for spec, compiled in zip(self.fields, self._structs):
            if spec.name == name:
                return self._convert(spec, compiled.unpack_from(data, base + spec.offset))
        raise KeyError(name)

    def _convert(self, spec: BinaryField, unpacked: Tuple[Any, ...]) -> Any:
        if spec.code == "s":
            return self._text(unpacked[0])
        if spec.count > 1:
            return tuple(unpacked)
        return unpacked[0]

    def decode(self, data: bytes, base: int) -> Dict[str, Any]:
        """Decode the record starting at byte `base`."""
        values: Dict[str, Any] = {}
        for spec, compiled in zip(self.fields, self._structs):
            values[spec.name] = self._convert(spec, compiled.unpack_from(data, base + spec.offset))
        for chunk in self.opaque:
            values[chunk.name] = bytes(data[base + chunk.start : base + chunk.end])
        for name in self.zero_as_none:
            if values.get(name) == 0:
                values[name] = None
        return values

    def encode(self, values: Mapping[str, Any]) -> bytes:
        """
        Render one record. Missing fields are zero; `None` references
        become zero again; opaque ranges are copied when given.
        """
        buffer = bytearray(self.stride)
        for spec, compiled in zip(self.fields, self._structs):
            value = values.get(spec.name)
            if spec.code == "s":
                compiled.pack_into(buffer, spec.offset, (value or "").encode(self.text_encoding))
            elif spec.count > 1:
                items = tuple(value or ()) + (0,) * spec.count
                compiled.pack_into(buffer, spec.offset, *items[: spec.count])
            else:
                compiled.pack_into(buffer, spec.offset, value or 0)
        for chunk in self.opaque:
            raw = values.get(chunk.name)
            if raw:
                buffer[chunk.start : chunk.end] = bytes(raw).ljust(chunk.end - chunk.start, b"\x00")[
                    : chunk.end - chunk.start
                ]
        return bytes(buffer)


class BinaryRecord(NamedTuple):
    index: int
    offset: int
    values: Dict[str, Any]


class BinaryReader:
    """Decode a byte stream of fixed-stride records."""

    def __init__(self, layout: BinaryLayout) -> None:
        self.layout = layout

    def detect(self, data: bytes) -> bool:
        """True only for non-empty exact multiples with a plausible first record."""
        stride = self.layout.stride
        if not data or len(data) % stride:
            return False
        value = self.layout.decode_field(data, 0, self.layout.validity_field)
        low, high = self.layout.validity_range
        return isinstance(value, int) and low <= value <= high

    def read(self, data: bytes, diagnostics: DiagnosticCollector) -> Tuple[BinaryRecord, ...]:
        stride = self.layout.stride
        if len(data) % stride:
            raise StrideMismatch(
                f"{len(data)} bytes is not a multiple of the {stride}-byte record",
                length=len(data),
                stride=stride,
                file_id=diagnostics.file_id,
            )
        records: List[BinaryRecord] = []
        for index in range(len(data) // stride):
            base = index * stride
            records.append(BinaryRecord(index + 1, base, self.layout.decode(data, base)))
        return tuple(records)


class BinaryParser(AbstractFileParser):
    """Parse a fixed-stride binary file into one entity per record."""

    description = "Binary file of fixed-size records decoded by absolute offsets."

    def __init__(self, layout: BinaryLayout) -> None:
        self.layout = layout
        self.name = layout.name
        self.reader = BinaryReader(layout)

    def detect(self, content: Content) -> bool:
        return isinstance(content, (bytes, bytearray)) and self.reader.detect(bytes(content))

    def parse(self, file_id: str, content: Content) -> ParseResult:
        data = content.encode(self.layout.text_encoding) if isinstance(content, str) else content
        diagnostics = DiagnosticCollector(file_id)
        records = self.reader.read(bytes(data), diagnostics)

        builder = EntityBuilder(file_id, self.name, diagnostics)
        for record in records:
            values = dict(record.values)
            if self.layout.index_field:
                values[self.layout.index_field] = record.index
            builder.add_values(self.layout.entity, values, record.index, f"@{record.offset}")

        log.debug(
            f"[READ] {file_id}",
            extra={"file_id": file_id, "records": len(records), "stride": self.layout.stride},
        )
        return builder.result()


__all__ = [
    "BinaryField",
    "BinaryLayout",
    "BinaryParser",
    "BinaryReader",
    "BinaryRecord",
    "OpaqueRange",
]
