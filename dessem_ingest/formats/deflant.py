"""
DEFLANT: outflows released before the study starts.

Plants with water travel time need the outflows of the hours preceding the
study. Every line is a ``DEFANT`` record naming the upstream plant, the
downstream element (hydro plant ``H`` or river section ``S``) and the flow of
a stage window.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind, stage_fields

DEFANT = RecordKind(
    "DEFANT",
    "DEFANT",
    (
        integer("upstream", 10, 12),
        integer("downstream", 15, 17),
        string("element_type", 20, 20),
        *stage_fields("start", 25),
        *stage_fields("end", 33),
        decimal("flow", 45, 54, decimals=1),
    ),
    models.PreviousOutflow,
)

GRAMMAR = LineGrammar(name="DEFLANT", kinds=(DEFANT,), comment_prefixes=("&",))

__all__ = ["GRAMMAR"]
