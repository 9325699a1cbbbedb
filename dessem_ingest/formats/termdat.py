"""TERMDAT: thermal plant and unit registry."""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import date_field, decimal, integer, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind

CADUSIT = RecordKind(
    "CADUSIT",
    "CADUSIT",
    (
        integer("plant", 9, 11),
        string("name", 13, 24),
        integer("subsystem", 26, 27),
        date_field("commission_date", day=(37, 38), month=(34, 35), year=(29, 32)),
        integer("plant_class", 40, 40),
        integer("fuel", 42, 42),
        integer("num_units", 44, 48),
    ),
    models.ThermalRegistry,
)

CADUNIDT = RecordKind(
    "CADUNIDT",
    "CADUNIDT",
    (
        integer("plant", 10, 12),
        integer("unit", 14, 16),
        date_field("commission_date", day=(25, 26), month=(22, 23), year=(17, 20)),
        integer("commission_hour", 28, 29),
        integer("unit_class", 31, 31),
        decimal("capacity", 33, 43, decimals=3),
        decimal("min_generation", 45, 54, decimals=3),
        integer("min_on_time", 56, 60),
        integer("min_off_time", 62, 66),
    ),
    models.ThermalUnit,
)

CURVACOMB = RecordKind(
    "CURVACOMB",
    "CURVACOMB",
    (
        integer("plant", 11, 13),
        integer("unit", 15, 17),
        integer("heat_rate", 19, 23),
        decimal("generation", 25, 34, decimals=1),
    ),
    models.HeatRateCurve,
)

GRAMMAR = LineGrammar(
    name="TERMDAT",
    kinds=(CADUSIT, CADUNIDT, CURVACOMB),
    comment_prefixes=("&",),
)

__all__ = ["GRAMMAR"]
