"""RAMPAS: thermal unit ramp trajectories."""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import decimal, integer, string
from dessem_ingest.grammar.records import BlockGrammar, BlockKind, RecordKind

RAMP_ROW = RecordKind(
    "RAMP",
    "",
    (
        integer("plant", 1, 3),
        integer("unit", 4, 7),
        string("configuration", 14, 14),
        string("ramp_type", 18, 18),
        decimal("power", 21, 30, decimals=1),
        integer("time", 32, 36),
        integer("flag", 38, 38),
    ),
    models.ThermalRamp,
)

GRAMMAR = BlockGrammar(
    name="RAMPAS",
    blocks=(BlockKind("RAMP", opener="RAMP", row=RAMP_ROW),),
    terminator="FIM",
)

__all__ = ["GRAMMAR"]
