"""
DADVAZ: natural inflows of the hydro plants.

The file opens with a labelled header, where every label line is followed by
an ``XXX`` ruler and then the values:

- ``NUMERO DE USINAS``: plant count;
- ``NUMERO DAS USINAS NO CADASTRO``: registry numbers of those plants;
- ``Hr Dd Mm Ano``: hour, day, month and year the study starts;
- ``Dia inic``: initial weekday, FCF week, number of weeks, pre-interest flag.

From the ``VAZOES`` label on, every line is one column-aligned inflow row,
read as a single block up to ``FIM`` or the end of input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from dessem_ingest.domain import models
from dessem_ingest.domain.builder import EntityBuilder, ParseResult, UnparsedLine
from dessem_ingest.domain.diagnostics import DiagnosticCode, DiagnosticCollector
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import BlockGrammar, BlockKind, RecordKind, stage_fields
from dessem_ingest.strategies.abstract import AbstractFileParser, Content
from dessem_ingest.strategies.block import BlockReader
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)

INFLOW_ROW = RecordKind(
    "VAZAO",
    "",
    (
        integer("plant", 1, 3),
        string("name", 5, 16),
        integer("inflow_type", 20, 20),
        *stage_fields("start", 25),
        *stage_fields("end", 33),
        decimal("flow", 45, 53),
    ),
    models.NaturalInflow,
)

GRAMMAR = BlockGrammar(
    name="DADVAZ",
    blocks=(BlockKind("VAZOES", row=INFLOW_ROW),),
    terminator=None,
    comment_prefixes=("&", "NUM", "XXX"),
    end_markers=("FIM", "9999"),
)

SECTION_LABEL = "VAZOES"


class InflowHeader(NamedTuple):
    values: Dict[str, Any]
    line: int
    raw: str
    body_start: int
    unparsed: Tuple[UnparsedLine, ...]


def _is_ruler(text: str) -> bool:
    return bool(text) and set(text) <= {"X", " "}


def _value_line(lines: Sequence[str], index: int) -> Tuple[int, Optional[str]]:
    """First line after `index` that is neither blank nor an ``XXX`` ruler."""
    for position in range(index + 1, len(lines)):
        text = lines[position].strip()
        if text and not _is_ruler(text.upper()):
            return position, text
    return len(lines), None


def _integers(
    text: Optional[str],
    count: int,
    label: str,
    line_no: int,
    expected: str,
    diagnostics: DiagnosticCollector,
) -> Optional[List[int]]:
    tokens = (text or "").split()
    if len(tokens) < count or not all(t.lstrip("+-").isdigit() for t in tokens[:count]):
        diagnostics.warn(
            DiagnosticCode.COERCION_ERROR,
            f"{label}: cannot read {count} integer(s)",
            line=line_no,
            expected=expected,
            excerpt=text or "",
        )
        return None
    return [int(t) for t in tokens[:count]]


def _plant_numbers(
    lines: Sequence[str], index: int
) -> Tuple[int, List[int]]:
    """Collect the numeric lines following the plant list label."""
    numbers: List[int] = []
    position = index + 1
    while position < len(lines):
        text = lines[position].strip()
        if text and not _is_ruler(text.upper()):
            tokens = text.split()
            if not all(t.isdigit() for t in tokens):
                break
            numbers.extend(int(t) for t in tokens)
        position += 1
    return position, numbers


def _trim_plant_list(numbers: List[int], count: int) -> List[int]:
    # Some decks print a 1..n index line before the registry numbers.
    if len(numbers) >= 2 * count and numbers[:count] == list(range(1, count + 1)):
        numbers = numbers[count:]
    return numbers[:count]


def read_header(lines: Sequence[str], diagnostics: DiagnosticCollector) -> InflowHeader:
    """
    Read the labelled header up to the inflow section.

    Malformed value lines are reported as coercion warnings and leave their
    fields unset; the inflow rows are read whatever the header holds.
    """
    values: Dict[str, Any] = {}
    unparsed: List[UnparsedLine] = []
    first_line: Optional[int] = None
    raw_header: List[str] = []
    index = 0

    while index < len(lines):
        raw = lines[index].rstrip("\r\n")
        text = raw.strip()
        label = text.upper()
        if not text or raw.startswith("&"):
            index += 1
            continue
        if first_line is None:
            first_line = index + 1

        if label.startswith(SECTION_LABEL):
            return InflowHeader(
                values, first_line, "\n".join(raw_header), index + 1, tuple(unparsed)
            )

        raw_header.append(raw)
        if label.startswith("NUMERO DE USINAS"):
            index, value = _value_line(lines, index)
            parsed = _integers(
                value, 1, "plant count", index + 1, "plant count", diagnostics
            )
            if parsed:
                values["plant_count"] = parsed[0]
        elif label.startswith("NUMERO DAS USINAS"):
            next_index, numbers = _plant_numbers(lines, index)
            values["plant_numbers"] = numbers
            index = next_index
            continue
        elif label.startswith("HR"):
            index, value = _value_line(lines, index)
            parsed = _integers(
                value, 4, "study start", index + 1, "hour, day, month and year", diagnostics
            )
            if parsed:
                hour, day, month, year = parsed
                try:
                    values["study_start"] = datetime(year, month, day, hour)
                except ValueError:
                    diagnostics.warn(
                        DiagnosticCode.COERCION_ERROR,
                        "study start: impossible date",
                        line=index + 1,
                        expected="hour, day, month and year",
                        excerpt=value or "",
                    )
        elif label.startswith("DIA INIC"):
            index, value = _value_line(lines, index)
            parsed = _integers(
                value,
                4,
                "study parameters",
                index + 1,
                "initial weekday, FCF week, number of weeks, pre-interest flag",
                diagnostics,
            )
            if parsed:
                (
                    values["initial_weekday"],
                    values["fcf_week"],
                    values["study_weeks"],
                    values["simulation_flag"],
                ) = parsed
        else:
            diagnostics.warn(
                DiagnosticCode.UNKNOWN_RECORD_TYPE,
                "unexpected header line",
                line=index + 1,
                expected="DADVAZ header label",
                excerpt=text[:80],
            )
            unparsed.append(UnparsedLine(index + 1, raw, "unknown header line"))
        index += 1

    return InflowHeader(
        values, first_line or 1, "\n".join(raw_header), len(lines), tuple(unparsed)
    )


def _check_plant_list(header: InflowHeader, diagnostics: DiagnosticCollector) -> None:
    count = header.values.get("plant_count")
    numbers = header.values.get("plant_numbers")
    if count is None or numbers is None:
        return
    trimmed = _trim_plant_list(numbers, count)
    header.values["plant_numbers"] = tuple(trimmed)
    if len(trimmed) < count:
        diagnostics.warn(
            DiagnosticCode.RANGE_VIOLATION,
            f"plant list holds {len(trimmed)} number(s), header declares {count}",
            line=header.line,
            expected=f"{count} plant numbers",
        )


class InflowFileParser(AbstractFileParser):
    """Parse the DADVAZ header into one entity and every inflow row into another."""

    description = "Labelled header followed by one inflow row per plant and stage window."

    def __init__(self, encoding: str = "latin-1") -> None:
        self.name = GRAMMAR.name
        self.encoding = encoding
        self._reader = BlockReader(GRAMMAR)

    def parse(self, file_id: str, content: Content) -> ParseResult:
        diagnostics = DiagnosticCollector(file_id)
        lines = self._decode_text(content).splitlines()

        header = read_header(lines, diagnostics)
        _check_plant_list(header, diagnostics)
        output = self._reader.read(
            lines[header.body_start :], diagnostics, start=header.body_start + 1
        )

        builder = EntityBuilder(file_id, self.name, diagnostics)
        if header.values:
            builder.add_values(models.InflowStudyHeader, header.values, header.line, header.raw)
        for item in output.items:
            builder.add_record(item)  # type: ignore[arg-type]
        for leftover in sorted(header.unparsed + output.unparsed, key=lambda u: u.line):
            builder.add_unparsed(*leftover)

        log.debug(
            f"[READ] {file_id}",
            extra={"file_id": file_id, "records": len(output.items), "format": self.name},
        )
        return builder.result()


__all__ = ["GRAMMAR", "INFLOW_ROW", "InflowFileParser", "InflowHeader", "read_header"]
