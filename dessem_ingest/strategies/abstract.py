"""
Reader strategy interfaces for DESSEM ingestion.

Concrete readers (multi-record line files, block-structured files, binary
fixed-stride files) implement the `FileParser` protocol: they take a file
identifier plus its raw content and return a `ParseResult`, the frozen entity
collection paired with the diagnostics of that pass. The registry only ever
sees the bound `parse` method, so any callable with the same signature can be
registered as well.
"""

from __future__ import annotations

import abc
from typing import Callable, Protocol, Union, runtime_checkable

from dessem_ingest.domain.builder import ParseResult

Content = Union[bytes, str]

ParserFunction = Callable[[str, bytes], ParseResult]


@runtime_checkable
class FileParser(Protocol):
    """
    Common interface all reader strategies implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier of the format.
    description : str
        A human-friendly summary of the format.
    """

    name: str
    description: str

    def parse(self, file_id: str, content: bytes) -> ParseResult:
        """
        Parse one file.

        Parameters
        ----------
        file_id : str
            File identifier used in diagnostics (usually the file name).
        content : bytes
            Whole file content.

        Returns
        -------
        ParseResult
            Frozen entity collection and the diagnostics of this pass.
        """
        ...


class AbstractFileParser(abc.ABC):
    """
    Optional ABC helper for class-based readers.

    Subclasses set `name` and `description` and implement `parse`.
    """

    name: str
    description: str
    encoding: str = "latin-1"

    def _decode_text(self, content: Content) -> str:
        if isinstance(content, str):
            return content
        return content.decode(self.encoding, errors="replace")

    @abc.abstractmethod
    def parse(self, file_id: str, content: bytes) -> ParseResult:  # pragma: no cover - interface only
        """Parse the content and return the frozen result."""
        raise NotImplementedError


__all__ = [
    "AbstractFileParser",
    "Content",
    "FileParser",
    "ParserFunction",
]
