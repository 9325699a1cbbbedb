"""
Record grammars: record kinds, typed records and discriminator lookup.

A `RecordKind` owns the ordered field table of one record type and the
discriminator that selects it. A `DiscriminatorTable` is built once per
grammar and always tries the longest known discriminator first, so that a
short tag such as ``RI`` never shadows a longer one such as ``RIVAR``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
)

from dessem_ingest.domain.diagnostics import DiagnosticCollector
from dessem_ingest.errors import CoercionError
from dessem_ingest.grammar.fields import ABSENT, Decoded, FieldSpec, decode, integer, unwrap

if TYPE_CHECKING:
    from dessem_ingest.domain.models import Entity

STAGE_TOKENS = ("I", "F")


def stage_fields(prefix: str, start: int) -> Tuple[FieldSpec, FieldSpec, FieldSpec]:
    """
    Day, hour and half-hour fields of a DESSEM stage starting at `start`.

    The day accepts the ``I`` (study start) and ``F`` (study end) markers.
    """
    return (
        integer(f"{prefix}_day", start, start + 1, tokens=STAGE_TOKENS),
        integer(f"{prefix}_hour", start + 3, start + 4),
        integer(f"{prefix}_half", start + 6, start + 6),
    )


def _abutting_fields(fields: Tuple[FieldSpec, ...]) -> FrozenSet[str]:
    """Names of fields whose next column belongs to another declared field."""
    ranges = []
    for spec in fields:
        if spec.delimiter is None:
            ranges.extend(spec.date_parts or (spec.columns,))
    return frozenset(
        spec.name
        for spec in fields
        if spec.delimiter is None
        and any(r.start <= spec.columns.end + 1 <= r.end for r in ranges)
    )


@dataclass(frozen=True)
class RecordKind:
    """A record grammar selected by its discriminator."""

    name: str
    discriminator: str
    fields: Tuple[FieldSpec, ...]
    entity: Optional[Type["Entity"]] = None
    abutting: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate field names in record kind {self.name!r}")
        object.__setattr__(self, "abutting", _abutting_fields(self.fields))

    def decode(
        self,
        line: str,
        line_no: int,
        diagnostics: DiagnosticCollector,
    ) -> "TypedRecord":
        """Decode every field; coercion failures become per-field warnings."""
        values: Dict[str, Decoded] = {}
        for spec in self.fields:
            bounded = spec.name not in self.abutting
            try:
                values[spec.name] = decode(line, spec, check_overflow=bounded)
            except CoercionError as exc:
                exc.line = line_no
                diagnostics.add(exc.to_diagnostic(diagnostics.file_id))
                values[spec.name] = ABSENT
        return TypedRecord(self, line_no, MappingProxyType(values), line)


@dataclass(frozen=True)
class TypedRecord:
    kind: RecordKind
    line_no: int
    values: Mapping[str, Decoded]
    raw: str

    def get(self, name: str, default: Any = None) -> Any:
        return unwrap(self.values.get(name, ABSENT), default)

    def unwrapped(self) -> Dict[str, Any]:
        return {name: unwrap(value) for name, value in self.values.items()}


class DiscriminatorTable:
    """
    Longest-first lookup from line prefix to record kind.

    A discriminator matches when it is followed by whitespace, one of the
    `separators` or the end of the line, so ``TMX`` never selects ``TM``.
    """

    def __init__(self, kinds: Iterable[RecordKind], separators: str = "") -> None:
        by_key: Dict[str, RecordKind] = {}
        for kind in kinds:
            key = kind.discriminator.upper()
            if not key:
                raise ValueError(f"record kind {kind.name!r} has an empty discriminator")
            if key in by_key:
                raise ValueError(f"duplicate discriminator {key!r}")
            by_key[key] = kind
        self._by_key = by_key
        self._separators = separators
        self._lengths = tuple(sorted({len(k) for k in by_key}, reverse=True))

    @property
    def lengths(self) -> Tuple[int, ...]:
        return self._lengths

    def match(self, text: str) -> Optional[RecordKind]:
        head = text[: self._lengths[0] + 1].upper() if self._lengths else ""
        for length in self._lengths:
            if len(head) < length:
                continue
            kind = self._by_key.get(head[:length])
            if kind is not None and (len(head) == length or self._at_boundary(head[length])):
                return kind
        return None

    def _at_boundary(self, char: str) -> bool:
        return char.isspace() or char in self._separators

    def __contains__(self, discriminator: str) -> bool:
        return discriminator.upper() in self._by_key

    def __len__(self) -> int:
        return len(self._by_key)


@dataclass(frozen=True)
class LineGrammar:
    """Grammar of a multi-record line file."""

    name: str
    kinds: Tuple[RecordKind, ...]
    comment_prefixes: Tuple[str, ...] = ("&",)
    end_markers: Tuple[str, ...] = ()
    separators: str = ""
    table: DiscriminatorTable = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "table", DiscriminatorTable(self.kinds, self.separators))

    def is_comment(self, line: str) -> bool:
        return line.startswith(self.comment_prefixes)

    def is_end(self, line: str) -> bool:
        return line.strip().upper() in self.end_markers


class Role(str, Enum):
    LEADING = "leading"
    DEPENDENT = "dependent"


@dataclass(frozen=True)
class SubRecord:
    """
    A marker-selected record inside a block.

    Leading sub-records open a composite keyed by `key_field`; dependent ones
    attach to the latest composite with the same key under `attach_as`.
    """

    kind: RecordKind
    role: Role
    key_field: str
    attach_as: Optional[str] = None

    def __post_init__(self) -> None:
        if self.role is Role.DEPENDENT and not self.attach_as:
            raise ValueError(f"dependent sub-record {self.kind.name!r} needs attach_as")


@dataclass(frozen=True)
class BlockKind:
    """
    One block type of a block-structured file.

    A block either opens with a bare keyword line (`opener`) or inline, with
    its leading sub-record. Blocks with a `row` grammar turn every marker-less
    line into one entity.
    """

    name: str
    opener: Optional[str] = None
    subrecords: Tuple[SubRecord, ...] = ()
    row: Optional[RecordKind] = None

    @property
    def leading(self) -> Tuple[SubRecord, ...]:
        return tuple(s for s in self.subrecords if s.role is Role.LEADING)


@dataclass(frozen=True)
class BlockGrammar:
    """
    Grammar of a block-structured file.

    `terminator=None` declares a file whose whole content is one implicit
    block, closed by the end of input. `line_prefix` is stripped before the
    sub-record marker is looked up (``OPERUH REST ...``).
    """

    name: str
    blocks: Tuple[BlockKind, ...]
    terminator: Optional[str] = "FIM"
    line_prefix: str = ""
    comment_prefixes: Tuple[str, ...] = ("&",)
    end_markers: Tuple[str, ...] = ()
    markers: DiscriminatorTable = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.terminator is None and len(self.blocks) != 1:
            raise ValueError("a grammar without terminator must declare exactly one block")
        kinds: List[RecordKind] = [s.kind for b in self.blocks for s in b.subrecords]
        object.__setattr__(self, "markers", DiscriminatorTable(kinds))

    def owner(self, kind: RecordKind) -> Tuple[BlockKind, SubRecord]:
        for block in self.blocks:
            for sub in block.subrecords:
                if sub.kind is kind:
                    return block, sub
        raise KeyError(kind.name)

    def opener_for(self, token: str) -> Optional[BlockKind]:
        for block in self.blocks:
            if block.opener is not None and block.opener.upper() == token:
                return block
        return None

    def is_comment(self, line: str) -> bool:
        return line.startswith(self.comment_prefixes)


__all__ = [
    "STAGE_TOKENS",
    "BlockGrammar",
    "BlockKind",
    "DiscriminatorTable",
    "LineGrammar",
    "RecordKind",
    "Role",
    "SubRecord",
    "TypedRecord",
    "stage_fields",
]
