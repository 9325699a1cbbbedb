"""
OPERUT: thermal unit operation.

``INIT`` and ``OPER`` keyword lines open blocks of positional rows, each closed
by ``FIM``. Option lines outside the blocks are not modelled.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import BlockGrammar, BlockKind, RecordKind, stage_fields

INIT_ROW = RecordKind(
    "INIT",
    "",
    (
        integer("plant", 1, 3),
        string("plant_name", 5, 16),
        integer("unit", 19, 21),
        integer("status", 25, 26),
        decimal("initial_generation", 30, 39, decimals=3),
        integer("hours_in_state", 42, 46),
        integer("mh_flag", 49, 49),
        integer("ad_flag", 52, 52),
        integer("t_flag", 55, 55),
        decimal("inflexible_generation", 58, 67, decimals=3),
    ),
    models.ThermalInitialState,
)

OPER_ROW = RecordKind(
    "OPER",
    "",
    (
        integer("plant", 1, 3),
        string("plant_name", 5, 16),
        integer("unit", 18, 19),
        *stage_fields("start", 21),
        *stage_fields("end", 29),
        decimal("min_generation", 37, 46, decimals=2),
        decimal("max_generation", 47, 56, decimals=2),
        decimal("cost", 57, 66, decimals=2),
    ),
    models.ThermalOperation,
)

GRAMMAR = BlockGrammar(
    name="OPERUT",
    blocks=(
        BlockKind("INIT", opener="INIT", row=INIT_ROW),
        BlockKind("OPER", opener="OPER", row=OPER_ROW),
    ),
    terminator="FIM",
)

__all__ = ["GRAMMAR"]
