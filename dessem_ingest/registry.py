"""
Format registry and dispatcher.

The registry maps a file identifier to the parser of its format. It is an
explicit value built once per process by `build_default_registry` and only
read afterwards; there is no module-level mutable table.

Usage:
    from dessem_ingest.registry import build_default_registry

    registry = build_default_registry()
    result = registry.dispatch("entdados.dat", path.read_bytes())
    print(result.collection.summary())

Matchers are regular expressions applied, case-insensitively, to the whole
base name of the file identifier (``ENTDADOS.RV2``, ``hidr.dat``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import List, Optional, Pattern, Tuple, Union

from dessem_ingest.domain.builder import ParseResult
from dessem_ingest.errors import NoParserRegistered
from dessem_ingest.formats import (
    areacont,
    dadvaz,
    deflant,
    dessemarq,
    entdados,
    hidr,
    operuh,
    operut,
    ptoper,
    rampas,
    renovaveis,
    respot,
    termdat,
)
from dessem_ingest.strategies.abstract import AbstractFileParser, Content, ParserFunction
from dessem_ingest.strategies.binary import BinaryParser
from dessem_ingest.strategies.block import BlockParser
from dessem_ingest.strategies.multi_record import MultiRecordParser
from dessem_ingest.utils.logging import get_logger

log = get_logger(__name__)

Matcher = Union[str, Pattern[str]]


@dataclass(frozen=True)
class Registration:
    name: str
    pattern: Pattern[str]
    parse: ParserFunction
    description: str = ""


class FormatRegistry:
    """Ordered list of (matcher, parser) pairs; the first match wins."""

    def __init__(self) -> None:
        self._entries: List[Registration] = []
        self._sealed = False

    def register(
        self,
        matcher: Matcher,
        parse_fn: ParserFunction,
        name: Optional[str] = None,
        description: str = "",
    ) -> None:
        """
        Associate a file name pattern with a parser function.

        Raises
        ------
        RuntimeError
            The registry has been sealed.
        ValueError
            A format with the same name is already registered.
        """
        if self._sealed:
            raise RuntimeError("registry is sealed")
        pattern = matcher if isinstance(matcher, re.Pattern) else re.compile(matcher, re.IGNORECASE)
        format_name = name or getattr(parse_fn, "__name__", pattern.pattern)
        if any(entry.name == format_name for entry in self._entries):
            raise ValueError(f"format {format_name!r} is already registered")
        self._entries.append(Registration(format_name, pattern, parse_fn, description))

    def seal(self) -> "FormatRegistry":
        self._sealed = True
        return self

    def lookup(self, file_id: str) -> Optional[Registration]:
        base = PurePath(file_id).name
        for entry in self._entries:
            if entry.pattern.fullmatch(base):
                return entry
        return None

    def resolve(self, file_id: str) -> Optional[ParserFunction]:
        entry = self.lookup(file_id)
        return entry.parse if entry is not None else None

    def dispatch(self, file_id: str, content: bytes) -> ParseResult:
        entry = self.lookup(file_id)
        if entry is None:
            raise NoParserRegistered(f"no parser registered for {file_id!r}", file_id=file_id)
        log.debug(f"[DISPATCH] {file_id}", extra={"file_id": file_id, "format": entry.name})
        return entry.parse(file_id, content)

    def known_formats(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def describe(self) -> List[Tuple[str, str, str]]:
        """(name, pattern, description) per registration, in match order."""
        return [(e.name, e.pattern.pattern, e.description) for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


class DetectingParser:
    """
    Pair of parsers for a file name shipped either binary or as text.

    The binary parser is chosen only when its detection heuristic accepts the
    content; everything else goes to the text parser.
    """

    def __init__(self, binary: BinaryParser, text: AbstractFileParser) -> None:
        self.binary = binary
        self.text = text
        self.name = text.name
        self.description = f"{binary.description} / {text.description}"

    def select(self, content: Content) -> Union[BinaryParser, AbstractFileParser]:
        return self.binary if self.binary.detect(content) else self.text

    def parse(self, file_id: str, content: bytes) -> ParseResult:
        parser = self.select(content)
        log.debug(
            f"[DETECT] {file_id}",
            extra={"file_id": file_id, "binary": parser is self.binary},
        )
        return parser.parse(file_id, content)


def _name_pattern(stem: str) -> str:
    return rf"{stem}(\.[\w-]+)?"


def build_default_registry(
    encoding: str = "latin-1",
    posto_range: Tuple[int, int] = hidr.DEFAULT_POSTO_RANGE,
) -> FormatRegistry:
    """Registry with every supported DESSEM input file, sealed."""
    registry = FormatRegistry()

    parsers = [
        (_name_pattern("entdados"), MultiRecordParser(entdados.GRAMMAR, encoding)),
        (
            _name_pattern("hidr"),
            DetectingParser(
                BinaryParser(hidr.binary_layout(posto_range)),
                MultiRecordParser(hidr.TEXT_GRAMMAR, encoding),
            ),
        ),
        (_name_pattern("termdat"), MultiRecordParser(termdat.GRAMMAR, encoding)),
        (_name_pattern("operuh"), BlockParser(operuh.GRAMMAR, encoding)),
        (_name_pattern("operut"), BlockParser(operut.GRAMMAR, encoding)),
        (_name_pattern("areacont"), BlockParser(areacont.GRAMMAR, encoding)),
        (_name_pattern("rampas"), BlockParser(rampas.GRAMMAR, encoding)),
        (_name_pattern("dadvaz"), dadvaz.InflowFileParser(encoding)),
        (_name_pattern("deflant"), MultiRecordParser(deflant.GRAMMAR, encoding)),
        (_name_pattern("ptoper"), MultiRecordParser(ptoper.GRAMMAR, encoding)),
        (_name_pattern("respot"), BlockParser(respot.GRAMMAR, encoding)),
        (_name_pattern("renovaveis"), MultiRecordParser(renovaveis.GRAMMAR, encoding)),
        (r"dessem\.arq", MultiRecordParser(dessemarq.GRAMMAR, encoding)),
    ]
    for pattern, parser in parsers:
        registry.register(
            pattern, parser.parse, name=parser.name, description=parser.description
        )

    log.debug("Registry built", extra={"formats": registry.known_formats()})
    return registry.seal()


__all__ = [
    "DetectingParser",
    "FormatRegistry",
    "Registration",
    "build_default_registry",
]
