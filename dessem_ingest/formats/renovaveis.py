"""
RENOVAVEIS: renewable plants and their generation forecasts.

Unlike the other inputs this file is not column-aligned: fields are
separated by ``;`` and the record type is the first field. Positions below
count fields, the record type being field 1.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import FieldKind, delimited
from dessem_ingest.grammar.records import LineGrammar, RecordKind

EOLICA = RecordKind(
    "EOLICA",
    "EOLICA",
    (
        delimited("plant", 2, FieldKind.INTEGER),
        delimited("name", 3),
        delimited("max_power", 4, FieldKind.DECIMAL),
        delimited("capacity_factor", 5, FieldKind.DECIMAL),
        delimited("registered", 6, FieldKind.INTEGER),
    ),
    models.RenewablePlant,
)

EOLICASUBM = RecordKind(
    "EOLICASUBM",
    "EOLICASUBM",
    (delimited("plant", 2, FieldKind.INTEGER), delimited("subsystem", 3)),
    models.RenewableSubsystem,
)

EOLICABARRA = RecordKind(
    "EOLICABARRA",
    "EOLICABARRA",
    (delimited("plant", 2, FieldKind.INTEGER), delimited("bus", 3, FieldKind.INTEGER)),
    models.RenewableBus,
)

EOLICA_GERACAO = RecordKind(
    "EOLICA-GERACAO",
    "EOLICA-GERACAO",
    (
        delimited("plant", 2, FieldKind.INTEGER),
        delimited("start_day", 3, FieldKind.INTEGER),
        delimited("start_hour", 4, FieldKind.INTEGER),
        delimited("start_half", 5, FieldKind.INTEGER),
        delimited("end_day", 6, FieldKind.INTEGER),
        delimited("end_hour", 7, FieldKind.INTEGER),
        delimited("end_half", 8, FieldKind.INTEGER),
        delimited("generation", 9, FieldKind.DECIMAL),
    ),
    models.RenewableGeneration,
)

GRAMMAR = LineGrammar(
    name="RENOVAVEIS",
    kinds=(EOLICA, EOLICASUBM, EOLICABARRA, EOLICA_GERACAO),
    comment_prefixes=("&",),
    separators=";",
)

__all__ = ["GRAMMAR"]
