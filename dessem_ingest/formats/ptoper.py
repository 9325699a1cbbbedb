"""PTOPER: fixed operating points imposed on plants for a stage window."""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind, stage_fields

PTOPER = RecordKind(
    "PTOPER",
    "PTOPER",
    (
        string("element_type", 8, 12),
        integer("element", 13, 17),
        string("variable", 19, 24),
        *stage_fields("start", 26),
        *stage_fields("end", 34),
        decimal("value", 42, 60),
    ),
    models.OperatingPoint,
)

GRAMMAR = LineGrammar(name="PTOPER", kinds=(PTOPER,), comment_prefixes=("&",))

__all__ = ["GRAMMAR"]
