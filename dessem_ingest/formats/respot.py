"""
RESPOT: power reserve requirements of control areas.

An ``RP`` line declares the reserve pool of a control area for a stage
window; the ``LM`` lines that follow with the same area give its minimum
reserve, usually one per half hour. The whole file is one block closed by
the end of input.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import (
    BlockGrammar,
    BlockKind,
    RecordKind,
    Role,
    SubRecord,
    stage_fields,
)

RP = RecordKind(
    "RP",
    "RP",
    (
        integer("area", 5, 7),
        *stage_fields("start", 10),
        *stage_fields("end", 18),
        string("description", 31, 70),
    ),
    models.PowerReserve,
)

LM = RecordKind(
    "LM",
    "LM",
    (
        integer("area", 5, 7),
        *stage_fields("start", 10),
        *stage_fields("end", 18),
        decimal("lower", 26, 35, decimals=2),
    ),
    models.PowerReserveLimit,
)

RESERVES = BlockKind(
    "RESERVES",
    subrecords=(
        SubRecord(RP, Role.LEADING, "area"),
        SubRecord(LM, Role.DEPENDENT, "area", attach_as="limits"),
    ),
)

GRAMMAR = BlockGrammar(
    name="RESPOT",
    blocks=(RESERVES,),
    terminator=None,
    end_markers=("FIM",),
)

__all__ = ["GRAMMAR"]
