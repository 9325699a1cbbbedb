"""
Reader strategies for DESSEM input files.

This module re-exports the parser interfaces and the three concrete readers
so downstream code can import from `dessem_ingest.strategies` directly.
"""

from dessem_ingest.strategies.abstract import (
    AbstractFileParser,
    FileParser,
    ParserFunction,
)
from dessem_ingest.strategies.binary import BinaryParser
from dessem_ingest.strategies.block import BlockParser
from dessem_ingest.strategies.multi_record import MultiRecordParser

__all__ = [
    # Abstracts
    "AbstractFileParser",
    "FileParser",
    "ParserFunction",
    # Concrete readers
    "BinaryParser",
    "BlockParser",
    "MultiRecordParser",
]
