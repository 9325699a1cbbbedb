"""
Per-file entity accumulation and the frozen results it produces.

An `EntityBuilder` is owned by exactly one parse pass. It turns typed records
(or composites of records) into entities, keeps the lines it could not use
and, once the pass is over, freezes everything into an `EntityCollection`.
Nothing can be added after freezing.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, DiagnosticCollector
from dessem_ingest.domain.models import Entity
from dessem_ingest.grammar.records import TypedRecord
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)


class UnparsedLine(NamedTuple):
    """Source content retained verbatim because no grammar applied to it."""

    line: int
    raw: str
    reason: str


@dataclass(frozen=True)
class EntityCollection:
    """
    Immutable result of parsing one file.

    `entities` keeps file order across kinds; `by_kind` groups the same
    entities per tag, each group still in file order.
    """

    file_id: str
    format: str
    entities: Tuple[Entity, ...] = ()
    unparsed: Tuple[UnparsedLine, ...] = ()

    @property
    def by_kind(self) -> Mapping[str, Tuple[Entity, ...]]:
        groups: Dict[str, List[Entity]] = {}
        for entity in self.entities:
            groups.setdefault(entity.tag, []).append(entity)
        return MappingProxyType({tag: tuple(items) for tag, items in groups.items()})

    def of_kind(self, kind: "str | Type[Entity]") -> Tuple[Entity, ...]:
        tag = kind if isinstance(kind, str) else kind.tag
        return tuple(e for e in self.entities if e.tag == tag)

    def kinds(self) -> List[str]:
        return list(self.by_kind)

    def summary(self) -> Dict[str, int]:
        return {tag: len(items) for tag, items in self.by_kind.items()}

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.entities)


class ParseResult(NamedTuple):
    collection: EntityCollection
    diagnostics: Tuple[Diagnostic, ...]


class EntityBuilder:
    """Mutable accumulator for one parse pass."""

    def __init__(self, file_id: str, format_name: str, diagnostics: DiagnosticCollector) -> None:
        self.file_id = file_id
        self.format_name = format_name
        self.diagnostics = diagnostics
        self._entities: List[Entity] = []
        self._unparsed: List[UnparsedLine] = []
        self._frozen = False

    def _ensure_open(self) -> None:
        if self._frozen:
            raise RuntimeError(f"builder for {self.file_id} is already frozen")

    def add(self, entity: Entity) -> Entity:
        self._ensure_open()
        self._entities.append(entity)
        return entity

    def add_unparsed(self, line: int, raw: str, reason: str) -> None:
        self._ensure_open()
        self._unparsed.append(UnparsedLine(line, raw, reason))

    def _construct(
        self, entity_type: Type[Entity], values: Mapping[str, Any], line: int, raw: str
    ) -> Optional[Entity]:
        try:
            return entity_type.from_values(values, source_line=line)
        except ValidationError as exc:
            self.diagnostics.warn(
                DiagnosticCode.COERCION_ERROR,
                f"{entity_type.tag}: {exc.error_count()} invalid field(s)",
                line=line,
                expected=entity_type.__name__,
                excerpt=raw,
            )
            return None

    def add_values(
        self, entity_type: Type[Entity], values: Mapping[str, Any], position: int, excerpt: str = ""
    ) -> Optional[Entity]:
        """Build one entity from already decoded values (binary records)."""
        self._ensure_open()
        entity = self._construct(entity_type, values, position, excerpt)
        if entity is None:
            self.add_unparsed(position, excerpt, "entity construction failed")
            return None
        return self.add(entity)

    def add_record(self, record: TypedRecord) -> Optional[Entity]:
        """Build one entity from a typed record of a line grammar."""
        self._ensure_open()
        entity_type = record.kind.entity
        if entity_type is None:
            self.add_unparsed(record.line_no, record.raw, f"{record.kind.name} has no entity")
            return None
        entity = self._construct(entity_type, record.unwrapped(), record.line_no, record.raw)
        if entity is None:
            self.add_unparsed(record.line_no, record.raw, "entity construction failed")
            return None
        return self.add(entity)

    def add_composite(
        self,
        leading: TypedRecord,
        dependents: Sequence[Tuple[str, Sequence[TypedRecord]]],
    ) -> Optional[Entity]:
        """
        Build a composite entity from its leading record and the dependent
        records attached to it, grouped by attribute name.

        Dependents are built in source line order whatever their grouping,
        so diagnostics and leftovers follow the file.
        """
        self._ensure_open()
        attached: Dict[str, List[Entity]] = {attribute: [] for attribute, _ in dependents}
        in_file_order = sorted(
            ((attribute, record) for attribute, records in dependents for record in records),
            key=lambda pair: pair[1].line_no,
        )
        for attribute, record in in_file_order:
            child_type = record.kind.entity
            if child_type is None:
                continue
            child = self._construct(child_type, record.unwrapped(), record.line_no, record.raw)
            if child is None:
                self.add_unparsed(record.line_no, record.raw, "entity construction failed")
            else:
                attached[attribute].append(child)

        entity_type = leading.kind.entity
        if entity_type is None:
            self.add_unparsed(leading.line_no, leading.raw, f"{leading.kind.name} has no entity")
            return None
        values = dict(leading.unwrapped())
        values.update({attribute: tuple(children) for attribute, children in attached.items()})
        entity = self._construct(entity_type, values, leading.line_no, leading.raw)
        if entity is None:
            self.add_unparsed(leading.line_no, leading.raw, "entity construction failed")
            return None
        return self.add(entity)

    def freeze(self) -> EntityCollection:
        self._ensure_open()
        self._frozen = True
        collection = EntityCollection(
            file_id=self.file_id,
            format=self.format_name,
            entities=tuple(self._entities),
            unparsed=tuple(self._unparsed),
        )
        log.debug(
            f"[FREEZE] {self.file_id}",
            extra={"file_id": self.file_id, "entities": len(collection), "format": self.format_name},
        )
        return collection

    def result(self) -> ParseResult:
        """Freeze and pair the collection with the pass diagnostics."""
        return ParseResult(self.freeze(), self.diagnostics.snapshot())


__all__ = ["EntityBuilder", "EntityCollection", "ParseResult", "UnparsedLine"]
