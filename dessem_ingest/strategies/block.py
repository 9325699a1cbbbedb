"""
Block-structured reader.

OPERUH, OPERUT, AREACONT and RAMPAS group related lines into blocks opened by
a keyword (or by their leading sub-record) and closed by a terminator such as
``FIM``. The reader is an explicit state machine:

- `classify` labels a line given the current state;
- `transition` is a pure function `(state, line class) -> (state, action)`;
- `BlockReader.read` applies the actions to an accumulator and returns an
  immutable `BlockOutput`.

End of input inside an open block raises `UnterminatedBlock`; there is no
implicit close unless the grammar declares the whole file as one block.
A dependent sub-record seen before the composite it belongs to is held until
a composite with the same key opens. If none ever does, the record is an
orphan: it is reported as a warning naming the missing leading record and
kept verbatim among the unparsed lines, and the rest of the file is kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from dessem_ingest.domain.builder import EntityBuilder, ParseResult, UnparsedLine
from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.errors import UnterminatedBlock
from dessem_ingest.grammar.records import BlockGrammar, BlockKind, Role, SubRecord, TypedRecord
from dessem_ingest.strategies.abstract import AbstractFileParser, Content
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)

_EXCERPT_WIDTH = 80


# ---------------------------------------------------------------------------
# States, line classes and actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    def __str__(self) -> str:
        return "Idle"


@dataclass(frozen=True)
class InBlock:
    block: BlockKind

    def __str__(self) -> str:
        return f"InBlock({self.block.name})"


IDLE = Idle()

State = Union[Idle, InBlock]


class LineTag(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    END = "end"
    TERMINATOR = "terminator"
    OPENER = "opener"
    MARKER = "marker"
    ROW = "row"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LineClass:
    tag: LineTag
    block: Optional[BlockKind] = None
    sub: Optional[SubRecord] = None


class Action(str, Enum):
    SKIP = "skip"
    STOP = "stop"
    OPEN = "open"
    OPEN_WITH_LEADING = "open_with_leading"
    LEADING = "leading"
    ATTACH = "attach"
    HOLD = "hold"
    ROW = "row"
    CLOSE = "close"
    UNKNOWN = "unknown"
    FAIL = "fail"


def initial_state(grammar: BlockGrammar) -> State:
    """Files without terminator are one block from the first line on."""
    if grammar.terminator is None:
        return InBlock(grammar.blocks[0])
    return IDLE


def classify(grammar: BlockGrammar, state: State, line: str) -> LineClass:
    stripped = line.strip()
    if not stripped:
        return LineClass(LineTag.BLANK)
    if grammar.is_comment(line):
        return LineClass(LineTag.COMMENT)
    if stripped.upper() in grammar.end_markers:
        return LineClass(LineTag.END)

    body = line
    if grammar.line_prefix:
        if not line.upper().startswith(grammar.line_prefix.upper()):
            return LineClass(LineTag.UNKNOWN)
        body = line[len(grammar.line_prefix) :]
    body = body.lstrip()
    token = body.split(None, 1)[0].upper() if body else ""

    if grammar.terminator is not None and token == grammar.terminator.upper():
        return LineClass(LineTag.TERMINATOR)
    opener = grammar.opener_for(token)
    if opener is not None:
        return LineClass(LineTag.OPENER, block=opener)

    kind = grammar.markers.match(body)
    if kind is not None:
        block, sub = grammar.owner(kind)
        return LineClass(LineTag.MARKER, block=block, sub=sub)
    if isinstance(state, InBlock) and state.block.row is not None:
        return LineClass(LineTag.ROW, block=state.block)
    return LineClass(LineTag.UNKNOWN)


def transition(state: State, line_class: LineClass) -> Tuple[State, Action]:
    """Pure transition function of the block state machine."""
    tag = line_class.tag
    if tag in (LineTag.BLANK, LineTag.COMMENT):
        return state, Action.SKIP
    if tag is LineTag.END:
        return state, Action.STOP

    if isinstance(state, Idle):
        if tag is LineTag.OPENER:
            return InBlock(line_class.block), Action.OPEN  # type: ignore[arg-type]
        if tag is LineTag.MARKER:
            sub, block = line_class.sub, line_class.block
            if sub.role is Role.DEPENDENT:  # type: ignore[union-attr]
                return state, Action.HOLD
            if block.opener is None:  # type: ignore[union-attr]
                return InBlock(block), Action.OPEN_WITH_LEADING  # type: ignore[arg-type]
        return state, Action.UNKNOWN

    if tag is LineTag.TERMINATOR:
        return IDLE, Action.CLOSE
    if tag is LineTag.OPENER:
        return state, Action.FAIL
    if tag is LineTag.MARKER:
        if line_class.block is not state.block:
            return state, Action.UNKNOWN
        if line_class.sub.role is Role.LEADING:  # type: ignore[union-attr]
            return state, Action.LEADING
        return state, Action.ATTACH
    if tag is LineTag.ROW:
        return state, Action.ROW
    return state, Action.UNKNOWN


# ---------------------------------------------------------------------------
# Output and accumulator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Composite:
    """A leading record and the dependent records grouped under it."""

    leading: TypedRecord
    dependents: Tuple[Tuple[str, Tuple[TypedRecord, ...]], ...] = ()

    def records(self) -> Tuple[TypedRecord, ...]:
        attached = [r for _, group in self.dependents for r in group]
        return (self.leading,) + tuple(sorted(attached, key=lambda r: r.line_no))


BlockItem = Union[Composite, TypedRecord]


class BlockOutput(NamedTuple):
    items: Tuple[BlockItem, ...]
    unparsed: Tuple[UnparsedLine, ...]


@dataclass
class _OpenComposite:
    sub: SubRecord
    record: TypedRecord
    attached: Dict[str, List[TypedRecord]] = field(default_factory=dict)

    def attach(self, sub: SubRecord, record: TypedRecord) -> None:
        self.attached.setdefault(sub.attach_as, []).append(record)  # type: ignore[arg-type]


@dataclass
class _Accumulator:
    block: BlockKind
    opened_at: int
    items: List[Union[_OpenComposite, TypedRecord]] = field(default_factory=list)
    latest: Dict[Any, _OpenComposite] = field(default_factory=dict)

    def last_composite(self) -> Optional[_OpenComposite]:
        for item in reversed(self.items):
            if isinstance(item, _OpenComposite):
                return item
        return None

    def freeze(self) -> List[BlockItem]:
        names = [s.attach_as for s in self.block.subrecords if s.role is Role.DEPENDENT]
        frozen: List[BlockItem] = []
        for item in self.items:
            if isinstance(item, _OpenComposite):
                groups = tuple((n, tuple(item.attached.get(n, ()))) for n in names)  # type: ignore[arg-type]
                frozen.append(Composite(item.record, groups))  # type: ignore[arg-type]
            else:
                frozen.append(item)
        return frozen


class BlockReader:
    """Run the block state machine over the lines of one file."""

    def __init__(self, grammar: BlockGrammar) -> None:
        self.grammar = grammar

    def read(
        self, lines: Iterable[str], diagnostics: DiagnosticCollector, start: int = 1
    ) -> BlockOutput:
        grammar = self.grammar
        state = initial_state(grammar)
        acc: Optional[_Accumulator] = (
            _Accumulator(state.block, start) if isinstance(state, InBlock) else None
        )
        orphans: Dict[Any, List[Tuple[SubRecord, TypedRecord]]] = {}
        items: List[BlockItem] = []
        unparsed: List[UnparsedLine] = []

        for line_no, raw in enumerate(lines, start=start):
            line = raw.rstrip("\r\n")
            line_class = classify(grammar, state, line)
            next_state, action = transition(state, line_class)

            if action is Action.STOP:
                break
            if action is Action.OPEN:
                acc = _Accumulator(line_class.block, line_no)  # type: ignore[arg-type]
            elif action is Action.OPEN_WITH_LEADING:
                acc = _Accumulator(line_class.block, line_no)  # type: ignore[arg-type]
                self._lead(acc, line_class.sub, line, line_no, orphans, diagnostics)  # type: ignore[arg-type]
            elif action is Action.LEADING:
                self._lead(acc, line_class.sub, line, line_no, orphans, diagnostics)  # type: ignore[arg-type]
            elif action is Action.ATTACH:
                self._attach(acc, line_class.sub, line, line_no, orphans, diagnostics)  # type: ignore[arg-type]
            elif action is Action.HOLD:
                self._attach(None, line_class.sub, line, line_no, orphans, diagnostics)  # type: ignore[arg-type]
            elif action is Action.ROW:
                acc.items.append(acc.block.row.decode(line, line_no, diagnostics))  # type: ignore[union-attr]
            elif action is Action.CLOSE:
                items.extend(acc.freeze())  # type: ignore[union-attr]
                acc = None
            elif action is Action.UNKNOWN:
                self._unknown(state, line, line_no, diagnostics)
                unparsed.append(UnparsedLine(line_no, line, "unknown sub-record"))
            elif action is Action.FAIL:
                raise UnterminatedBlock(
                    f"block {acc.block.name} opened at line {acc.opened_at} "  # type: ignore[union-attr]
                    f"is still open when {line_class.block.name} starts",  # type: ignore[union-attr]
                    file_id=diagnostics.file_id,
                    line=line_no,
                    expected=f"terminator {grammar.terminator} before the next block",
                )
            state = next_state

        if isinstance(state, InBlock):
            if grammar.terminator is not None:
                raise UnterminatedBlock(
                    f"end of input inside block {state.block.name} "
                    f"opened at line {acc.opened_at}",  # type: ignore[union-attr]
                    file_id=diagnostics.file_id,
                    line=acc.opened_at,  # type: ignore[union-attr]
                    expected=f"terminator {grammar.terminator} before end of input",
                )
            items.extend(acc.freeze())  # type: ignore[union-attr]

        for held in orphans.values():
            for sub, record in held:
                self._orphan(sub, record, diagnostics)
                unparsed.append(UnparsedLine(record.line_no, record.raw, "orphan dependent"))
        unparsed.sort(key=lambda leftover: leftover.line)
        return BlockOutput(tuple(items), tuple(unparsed))

    @staticmethod
    def _lead(
        acc: _Accumulator,
        sub: SubRecord,
        line: str,
        line_no: int,
        orphans: Dict[Any, List[Tuple[SubRecord, TypedRecord]]],
        diagnostics: DiagnosticCollector,
    ) -> None:
        record = sub.kind.decode(line, line_no, diagnostics)
        key = record.get(sub.key_field)
        composite = _OpenComposite(sub, record)
        if key in orphans:
            waiting = orphans.pop(key)
            for held_sub, held in waiting:
                if held_sub in acc.block.subrecords:
                    composite.attach(held_sub, held)
            others = [(s, r) for s, r in waiting if s not in acc.block.subrecords]
            if others:
                orphans[key] = others
        acc.items.append(composite)
        if key is not None:
            acc.latest[key] = composite

    @staticmethod
    def _attach(
        acc: Optional[_Accumulator],
        sub: SubRecord,
        line: str,
        line_no: int,
        orphans: Dict[Any, List[Tuple[SubRecord, TypedRecord]]],
        diagnostics: DiagnosticCollector,
    ) -> None:
        record = sub.kind.decode(line, line_no, diagnostics)
        key = record.get(sub.key_field)
        target: Optional[_OpenComposite] = None
        if acc is not None:
            target = acc.latest.get(key) if key is not None else acc.last_composite()
        if target is None:
            orphans.setdefault(key, []).append((sub, record))
            log.debug(
                "[HOLD] dependent sub-record without open composite",
                extra={"file_id": diagnostics.file_id, "line": line_no, "key": key},
            )
            return
        target.attach(sub, record)

    def _orphan(
        self, sub: SubRecord, record: TypedRecord, diagnostics: DiagnosticCollector
    ) -> None:
        block, _ = self.grammar.owner(sub.kind)
        leaders = "/".join(s.kind.name for s in block.leading) or block.name
        key = record.get(sub.key_field)
        diagnostics.warn(
            DiagnosticCode.REFERENTIAL_INTEGRITY,
            f"{sub.kind.name} record never found its leading {leaders} record",
            line=record.line_no,
            expected=f"leading {leaders} record with {sub.key_field} {key} in the same block",
            excerpt=record.raw[:_EXCERPT_WIDTH],
        )

    def _unknown(
        self, state: State, line: str, line_no: int, diagnostics: DiagnosticCollector
    ) -> None:
        in_block = isinstance(state, InBlock)
        diagnostics.warn(
            DiagnosticCode.UNKNOWN_SUB_RECORD if in_block else DiagnosticCode.UNKNOWN_RECORD_TYPE,
            f"unexpected line in state {state}",
            line=line_no,
            expected=f"{self.grammar.name} block keyword or sub-record",
            excerpt=line[:_EXCERPT_WIDTH],
        )


class BlockParser(AbstractFileParser):
    """Parse a block-structured file into composite and row entities."""

    description = "Block file grouped by keyword markers and terminator lines."

    def __init__(self, grammar: BlockGrammar, encoding: str = "latin-1") -> None:
        self.grammar = grammar
        self.name = grammar.name
        self.encoding = encoding
        self._reader = BlockReader(grammar)

    def parse(self, file_id: str, content: Content) -> ParseResult:
        diagnostics = DiagnosticCollector(file_id)
        output = self._reader.read(self._decode_text(content).splitlines(), diagnostics)

        builder = EntityBuilder(file_id, self.name, diagnostics)
        for item in output.items:
            if isinstance(item, Composite):
                builder.add_composite(item.leading, item.dependents)
            else:
                builder.add_record(item)
        for leftover in output.unparsed:
            builder.add_unparsed(*leftover)
        return builder.result()


__all__ = [
    "Action",
    "BlockOutput",
    "BlockParser",
    "BlockReader",
    "Composite",
    "IDLE",
    "Idle",
    "InBlock",
    "LineClass",
    "LineTag",
    "classify",
    "initial_state",
    "transition",
]
