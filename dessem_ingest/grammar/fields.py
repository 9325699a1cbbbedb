"""
Column grammar primitives: field specifications and fixed-width coercion.

DESSEM manuals describe every record as a table of 1-based, inclusive column
ranges. A `FieldSpec` captures one row of such a table and `decode` turns the
text found in that range into a typed value. Blank ranges are not errors: they
decode to the `ABSENT` marker, never to zero or an empty string.

Usage:
    from dessem_ingest.grammar.fields import ABSENT, decimal, decode, integer

    spec = integer("plant", 5, 7)
    decode("UH    1  CAMARGOS", spec)   # Present(value=1)
    decode("UH", spec)                  # ABSENT
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from dessem_ingest.errors import CoercionError

T = TypeVar("T")

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([EeDd][+-]?\d+)?$")
_CONTINUATION = frozenset("0123456789+-.")

# Two-digit years below the pivot belong to the 2000s.
YEAR_PIVOT = 50


class FieldKind(str, Enum):
    INTEGER = "integer"
    DECIMAL = "fixed-decimal"
    STRING = "fixed-string"
    DATE = "date-part"


@dataclass(frozen=True)
class ColumnRange:
    """1-based inclusive column range, as printed in the file manuals."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"invalid column range {self.start}-{self.end}")

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def slice(self, line: str) -> str:
        return line[self.start - 1 : self.end]

    def as_tuple(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Present(Generic[T]):
    value: T


class _Absent:
    """Singleton marking a blank column range."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

Decoded = Union[Present[Any], _Absent]


def unwrap(decoded: Decoded, default: Any = None) -> Any:
    """Return the wrapped value, or `default` when the field was blank."""
    if isinstance(decoded, Present):
        return decoded.value
    return default


@dataclass(frozen=True)
class FieldSpec:
    """
    One column of a record grammar.

    Attributes
    ----------
    name : str
        Field name; matches the attribute of the entity built from the record.
    columns : ColumnRange
        Range read for the field. For dates it spans all date parts.
    kind : FieldKind
        Declared kind driving coercion.
    decimals : int | None
        Fractional digits for fixed-decimal fields. Used for rendering and,
        when `implied_point` is set, to place the omitted decimal point.
    implied_point : bool
        The source omits the literal separator; the last `decimals` digits are
        the fractional part.
    tokens : tuple[str, ...]
        Literal tokens accepted verbatim by integer fields (stage markers
        ``I`` and ``F``).
    zero_pad : bool
        Integers are written left-padded with zeros (``00066``).
    date_parts : tuple[ColumnRange, ColumnRange, ColumnRange] | None
        Day, month and year sub-ranges of a date-part field.
    delimiter : str | None
        Set on fields of delimited records. `columns.start` is then the
        1-based position of the field among the delimited tokens.
    """

    name: str
    columns: ColumnRange
    kind: FieldKind
    decimals: Optional[int] = None
    implied_point: bool = False
    tokens: Tuple[str, ...] = ()
    zero_pad: bool = False
    date_parts: Optional[Tuple[ColumnRange, ColumnRange, ColumnRange]] = None
    delimiter: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is FieldKind.DATE and self.date_parts is None:
            raise ValueError(f"date field {self.name!r} needs day/month/year ranges")
        if self.implied_point and not self.decimals:
            raise ValueError(f"implied point on {self.name!r} needs a decimal count")

    @property
    def where(self) -> str:
        if self.delimiter is not None:
            return f"field {self.columns.start}"
        return f"columns {self.columns}"

    @property
    def expected(self) -> str:
        """Human-readable format description used in diagnostics."""
        if self.kind is FieldKind.INTEGER:
            text = f"integer in {self.where}"
            if self.tokens:
                text += f" or one of {', '.join(self.tokens)}"
            return text
        if self.kind is FieldKind.DECIMAL:
            suffix = " (implied point)" if self.implied_point else ""
            return f"decimal in {self.where}{suffix}"
        if self.kind is FieldKind.DATE:
            day, month, year = self.date_parts  # type: ignore[misc]
            return f"date with day {day}, month {month}, year {year}"
        return f"text in {self.where}"


def integer(
    name: str, start: int, end: int, tokens: Tuple[str, ...] = (), zero_pad: bool = False
) -> FieldSpec:
    return FieldSpec(
        name, ColumnRange(start, end), FieldKind.INTEGER, tokens=tokens, zero_pad=zero_pad
    )


def decimal(
    name: str, start: int, end: int, decimals: Optional[int] = None, implied: bool = False
) -> FieldSpec:
    return FieldSpec(
        name, ColumnRange(start, end), FieldKind.DECIMAL, decimals=decimals, implied_point=implied
    )


def string(name: str, start: int, end: int) -> FieldSpec:
    return FieldSpec(name, ColumnRange(start, end), FieldKind.STRING)


def date_field(
    name: str, day: Tuple[int, int], month: Tuple[int, int], year: Tuple[int, int]
) -> FieldSpec:
    parts = (ColumnRange(*day), ColumnRange(*month), ColumnRange(*year))
    span = ColumnRange(min(p.start for p in parts), max(p.end for p in parts))
    return FieldSpec(name, span, FieldKind.DATE, date_parts=parts)


def delimited(
    name: str, position: int, kind: FieldKind = FieldKind.STRING, delimiter: str = ";"
) -> FieldSpec:
    """Field read from the `position`-th token (1-based) of a delimited record."""
    return FieldSpec(name, ColumnRange(position, position), kind, delimiter=delimiter)


def _coercion(spec: FieldSpec, raw: str, reason: str) -> CoercionError:
    return CoercionError(
        f"{spec.name}: {reason} {raw.strip()!r}",
        field=spec.name,
        raw=raw,
        expected=spec.expected,
        columns=spec.columns.as_tuple(),
    )


def _decode_decimal(token: str, raw: str, spec: FieldSpec) -> float:
    if not _DECIMAL_RE.match(token):
        raise _coercion(spec, raw, "not a decimal")
    normalized = token.replace("D", "E").replace("d", "e")
    if spec.implied_point and "." not in token and "e" not in normalized.lower():
        value = int(normalized) / (10**spec.decimals)  # type: ignore[operator]
    else:
        value = float(normalized)
    if not math.isfinite(value):
        raise _coercion(spec, raw, "decimal overflow")
    return value


def _decode_date(text: str, spec: FieldSpec) -> Decoded:
    day_range, month_range, year_range = spec.date_parts  # type: ignore[misc]
    parts = [r.slice(text).strip() for r in (day_range, month_range, year_range)]
    if not all(parts):
        return ABSENT
    raw = spec.columns.slice(text)
    if not all(_INTEGER_RE.match(p) for p in parts):
        raise _coercion(spec, raw, "not a date")
    day, month, year = (int(p) for p in parts)
    if len(parts[2]) <= 2:
        year += 2000 if year < YEAR_PIVOT else 1900
    try:
        return Present(date(year, month, day))
    except ValueError:
        raise _coercion(spec, raw, "impossible date") from None


def _runs_past_end(text: str, spec: FieldSpec) -> bool:
    end = spec.columns.end
    return len(text) > end and not text[end - 1].isspace() and text[end] in _CONTINUATION


def _raw_slice(text: str, spec: FieldSpec) -> str:
    if spec.delimiter is None:
        return spec.columns.slice(text)
    parts = text.split(spec.delimiter)
    position = spec.columns.start
    return parts[position - 1] if position <= len(parts) else ""


def decode(source: Union[str, bytes], spec: FieldSpec, check_overflow: bool = True) -> Decoded:
    """
    Decode the column range described by `spec` from a source line.

    Parameters
    ----------
    source : str | bytes
        Full source line. Bytes are read as latin-1, the encoding of the
        official files.
    spec : FieldSpec
        Field to decode.
    check_overflow : bool
        Reject a number whose digits continue past the last column of the
        range. Record kinds turn this off for a field immediately followed
        by another declared field.

    Returns
    -------
    Present | ABSENT
        `ABSENT` whenever the range is entirely blank, whatever the kind.

    Raises
    ------
    CoercionError
        Non-blank content that does not match the declared kind, or a number
        wider than its columns.
    """
    text = source.decode("latin-1") if isinstance(source, (bytes, bytearray)) else source
    if spec.kind is FieldKind.DATE:
        return _decode_date(text, spec)

    raw = _raw_slice(text, spec)
    token = raw.strip()
    if not token:
        return ABSENT
    if spec.kind is FieldKind.STRING:
        return Present(token)
    if spec.tokens and token.upper() in spec.tokens:
        return Present(token.upper())
    if check_overflow and spec.delimiter is None and _runs_past_end(text, spec):
        spilled = text[spec.columns.start - 1 :].split(None, 1)[0]
        raise _coercion(spec, spilled, f"value runs past column {spec.columns.end}")
    if spec.kind is FieldKind.INTEGER:
        if not _INTEGER_RE.match(token):
            raise _coercion(spec, raw, "not an integer")
        return Present(int(token))
    return Present(_decode_decimal(token, raw, spec))


def _render_decimal(value: float, spec: FieldSpec) -> str:
    width = spec.columns.width
    if spec.implied_point:
        return str(int(round(value * 10**spec.decimals)))  # type: ignore[operator]
    if spec.decimals is not None:
        return f"{value:.{spec.decimals}f}"
    text = repr(float(value))
    precision = width
    while len(text) > width and precision > 1:
        precision -= 1
        text = f"{value:.{precision}g}"
    return text


def encode(value: Any, spec: FieldSpec) -> str:
    """
    Render a value into exactly the width of `spec`.

    Numbers are right-aligned and text is left-aligned. `None` and `ABSENT`
    render as blanks.

    Raises
    ------
    CoercionError
        The rendered value does not fit the declared width.
    """
    if isinstance(value, Present):
        value = value.value
    width = spec.columns.width
    if value is None or value is ABSENT:
        return " " * width
    if spec.kind is FieldKind.DATE:
        return spec.columns.slice(place(" " * spec.columns.end, spec, value))

    if spec.kind is FieldKind.STRING:
        text = str(value)
        aligned = text.ljust(width)
    elif isinstance(value, str):
        text = value
        aligned = text.rjust(width)
    elif spec.kind is FieldKind.INTEGER:
        text = str(int(value))
        aligned = text.zfill(width) if spec.zero_pad else text.rjust(width)
    else:
        text = _render_decimal(float(value), spec)
        aligned = text.rjust(width)

    if len(text) > width:
        raise CoercionError(
            f"{spec.name}: value {text!r} overflows width {width}",
            field=spec.name,
            raw=text,
            expected=spec.expected,
            columns=spec.columns.as_tuple(),
        )
    return aligned


def _overlay(line: str, columns: ColumnRange, text: str) -> str:
    padded = line.ljust(columns.end)
    return padded[: columns.start - 1] + text + padded[columns.end :]


def place(line: str, spec: FieldSpec, value: Any) -> str:
    """Write `value` into the columns of `spec`, padding the line as needed."""
    if spec.delimiter is not None:
        raise ValueError(f"{spec.name} is a delimited field and has no columns")
    if isinstance(value, Present):
        value = value.value
    if spec.kind is not FieldKind.DATE or value is None or value is ABSENT:
        return _overlay(line, spec.columns, encode(value, spec))

    day_range, month_range, year_range = spec.date_parts  # type: ignore[misc]
    year = value.year if year_range.width >= 4 else value.year % 100
    line = _overlay(line, day_range, f"{value.day:0{day_range.width}d}")
    line = _overlay(line, month_range, f"{value.month:0{month_range.width}d}")
    return _overlay(line, year_range, f"{year:0{year_range.width}d}")


__all__ = [
    "ABSENT",
    "ColumnRange",
    "Decoded",
    "FieldKind",
    "FieldSpec",
    "Present",
    "YEAR_PIVOT",
    "date_field",
    "decimal",
    "decode",
    "delimited",
    "encode",
    "integer",
    "place",
    "string",
    "unwrap",
]
