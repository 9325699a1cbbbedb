"""
Multi-record line reader.

Files such as ENTDADOS, HIDR (text) and TERMDAT interleave many record kinds,
one per line, each selected by a leading discriminator. The reader walks the
lines once, in order:

- blank and comment lines are skipped, end markers stop the read;
- the discriminator table picks the record kind, longest match first;
- an unknown discriminator is a warning and the raw line is kept aside;
- every field is decoded independently, so one bad column never drops the
  rest of the record.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Tuple

from dessem_ingest.domain.builder import EntityBuilder, ParseResult, UnparsedLine
from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.grammar.records import LineGrammar, TypedRecord
from dessem_ingest.strategies.abstract import AbstractFileParser, Content
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)

_EXCERPT_WIDTH = 80


class RecordBatch(NamedTuple):
    """Typed records per kind (file order), all records in file order, and leftovers."""

    records: Mapping[str, Tuple[TypedRecord, ...]]
    ordered: Tuple[TypedRecord, ...]
    unparsed: Tuple[UnparsedLine, ...]


class MultiRecordReader:
    """Stateless reader bound to one line grammar."""

    def __init__(self, grammar: LineGrammar) -> None:
        self.grammar = grammar

    def read(self, lines: Iterable[str], diagnostics: DiagnosticCollector) -> RecordBatch:
        per_kind: Dict[str, List[TypedRecord]] = {}
        ordered: List[TypedRecord] = []
        unparsed: List[UnparsedLine] = []

        for line_no, line in enumerate(lines, start=1):
            line = line.rstrip("\r\n")
            if not line.strip() or self.grammar.is_comment(line):
                continue
            if self.grammar.is_end(line):
                break

            kind = self.grammar.table.match(line)
            if kind is None:
                token = line.split(None, 1)[0]
                diagnostics.warn(
                    DiagnosticCode.UNKNOWN_RECORD_TYPE,
                    f"unknown record type {token!r}",
                    line=line_no,
                    expected=f"one of {self.grammar.name} record kinds",
                    excerpt=line[:_EXCERPT_WIDTH],
                )
                unparsed.append(UnparsedLine(line_no, line, "unknown record type"))
                continue

            record = kind.decode(line, line_no, diagnostics)
            per_kind.setdefault(kind.name, []).append(record)
            ordered.append(record)

        return RecordBatch(
            records=MappingProxyType({k: tuple(v) for k, v in per_kind.items()}),
            ordered=tuple(ordered),
            unparsed=tuple(unparsed),
        )


class MultiRecordParser(AbstractFileParser):
    """Parse a multi-record line file into one entity per record."""

    description = "Line file with one discriminated record per line."

    def __init__(self, grammar: LineGrammar, encoding: str = "latin-1") -> None:
        self.grammar = grammar
        self.name = grammar.name
        self.encoding = encoding
        self._reader = MultiRecordReader(grammar)

    def parse(self, file_id: str, content: Content) -> ParseResult:
        diagnostics = DiagnosticCollector(file_id)
        batch = self._reader.read(self._decode_text(content).splitlines(), diagnostics)

        builder = EntityBuilder(file_id, self.name, diagnostics)
        for record in batch.ordered:
            builder.add_record(record)
        for leftover in batch.unparsed:
            builder.add_unparsed(*leftover)

        log.debug(
            f"[READ] {file_id}",
            extra={"file_id": file_id, "records": len(batch.ordered), "unknown": len(batch.unparsed)},
        )
        return builder.result()


__all__ = ["MultiRecordParser", "MultiRecordReader", "RecordBatch"]
