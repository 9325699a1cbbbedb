"""AREACONT: control areas and their member plants."""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import integer, string
from dessem_ingest.grammar.records import BlockGrammar, BlockKind, RecordKind

AREA_ROW = RecordKind(
    "AREA",
    "",
    (integer("area", 1, 3), string("name", 9, 48)),
    models.ControlArea,
)

USINA_ROW = RecordKind(
    "USINA",
    "",
    (
        integer("area", 1, 3),
        string("member_type", 8, 8),
        integer("component", 10, 12),
        string("name", 15, 54),
    ),
    models.ControlAreaMember,
)

GRAMMAR = BlockGrammar(
    name="AREACONT",
    blocks=(
        BlockKind("AREA", opener="AREA", row=AREA_ROW),
        BlockKind("USINA", opener="USINA", row=USINA_ROW),
    ),
    terminator="FIM",
    end_markers=("9999",),
)

__all__ = ["GRAMMAR"]
