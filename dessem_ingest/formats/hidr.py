"""
HIDR: hydro plant registry.

The registry ships in two encodings under the same file name:

- a binary file of 792-byte records, one per plant slot, where the record
  index is the plant number;
- a text file of keyword lines (``CADUSIH``, ``POLCOT``...).

`binary_layout` builds the offset table; `TEXT_GRAMMAR` the line grammar. The
registry decides between them per file content.
"""

from __future__ import annotations

from typing import Tuple

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import date_field, decimal, integer, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind
from dessem_ingest.strategies.binary import BinaryField, BinaryLayout, OpaqueRange

RECORD_SIZE = 792
DEFAULT_POSTO_RANGE: Tuple[int, int] = (1, 9999)

_FIELDS = (
    BinaryField("name", 0, "s", 12),
    BinaryField("posto", 12, "i"),
    BinaryField("posto_bdh", 16, "q"),
    BinaryField("subsystem", 24, "i"),
    BinaryField("company", 28, "i"),
    BinaryField("downstream", 32, "i"),
    BinaryField("diversion", 36, "i"),
    BinaryField("min_volume", 40, "f"),
    BinaryField("max_volume", 44, "f"),
    BinaryField("spillway_volume", 48, "f"),
    BinaryField("diversion_volume", 52, "f"),
    BinaryField("min_elevation", 56, "f"),
    BinaryField("max_elevation", 60, "f"),
    BinaryField("volume_elevation_poly", 64, "f", 5),
    BinaryField("elevation_area_poly", 84, "f", 5),
    BinaryField("evaporation", 104, "i", 12),
    BinaryField("unit_sets", 152, "i"),
    BinaryField("machines_per_set", 156, "i", 5),
    BinaryField("nominal_power", 176, "f", 5),
    BinaryField("nominal_head", 496, "f", 5),
    BinaryField("nominal_flow", 516, "i", 5),
    BinaryField("productivity", 536, "f"),
    BinaryField("losses", 540, "f"),
    BinaryField("tailrace_poly_count", 544, "i"),
    BinaryField("tailrace_polys", 548, "f", 36),
    BinaryField("tailrace_reference", 692, "f"),
    BinaryField("influence", 696, "i"),
    BinaryField("max_load_factor", 700, "f"),
    BinaryField("min_load_factor", 704, "f"),
    BinaryField("min_flow", 708, "i"),
    BinaryField("base_units", 712, "i"),
    BinaryField("turbine_type", 716, "i"),
    BinaryField("set_representation", 720, "i"),
    BinaryField("teif", 724, "f"),
    BinaryField("ip", 728, "f"),
    BinaryField("loss_type", 732, "i"),
    BinaryField("reference_date", 736, "s", 12),
    BinaryField("notes", 748, "s", 39),
    BinaryField("reference_volume", 787, "f"),
    BinaryField("regulation", 791, "s", 1),
)


def binary_layout(posto_range: Tuple[int, int] = DEFAULT_POSTO_RANGE) -> BinaryLayout:
    """Offset table of the binary registry, detected by a plausible posto."""
    return BinaryLayout(
        name="HIDR",
        stride=RECORD_SIZE,
        fields=_FIELDS,
        entity=models.HydroPlantRecord,
        validity_field="posto",
        validity_range=posto_range,
        opaque=(OpaqueRange("reserved", 196, 496),),
        zero_as_none=("downstream", "diversion"),
    )


CADUSIH = RecordKind(
    "CADUSIH",
    "CADUSIH",
    (
        integer("plant", 9, 11),
        string("name", 13, 24),
        integer("subsystem", 26, 27),
        date_field("commission_date", day=(37, 38), month=(34, 35), year=(29, 32)),
        integer("downstream", 40, 41),
        integer("diversion", 43, 44),
        integer("plant_type", 46, 46),
        decimal("min_volume", 48, 57, decimals=1),
        decimal("max_volume", 59, 68, decimals=1),
        decimal("max_turbine_flow", 70, 79, decimals=1),
        decimal("capacity", 81, 90, decimals=1),
        decimal("productivity", 92, 101, decimals=4),
    ),
    models.HydroRegistry,
)

USITVIAG = RecordKind(
    "USITVIAG",
    "USITVIAG",
    (integer("plant", 10, 12), integer("downstream", 14, 15), decimal("travel_time", 17, 21)),
    models.HydroTravelTime,
)


def _polynomial(tag: str, entity: type) -> RecordKind:
    coefficients = tuple(decimal(f"coef{i}", 15 + 11 * i, 24 + 11 * i) for i in range(6))
    return RecordKind(
        tag,
        tag,
        (integer("plant", 8, 10), integer("degree", 12, 13), *coefficients),
        entity,
    )


POLCOT = _polynomial("POLCOT", models.VolumeElevationPolynomial)
POLARE = _polynomial("POLARE", models.ElevationAreaPolynomial)
POLJUS = _polynomial("POLJUS", models.TailracePolynomial)

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

COEFEVA = RecordKind(
    "COEFEVA",
    "COEFEVA",
    (
        integer("plant", 9, 11),
        *(decimal(month, 13 + 6 * i, 17 + 6 * i) for i, month in enumerate(MONTHS)),
    ),
    models.EvaporationCoefficients,
)

CADCONJ = RecordKind(
    "CADCONJ",
    "CADCONJ",
    (
        integer("plant", 9, 11),
        integer("unit_set", 13, 14),
        integer("num_units", 16, 17),
        decimal("unit_capacity", 19, 28, decimals=2),
        decimal("min_generation", 30, 39, decimals=2),
        decimal("max_turbine_flow", 41, 50, decimals=2),
    ),
    models.UnitSet,
)

TEXT_GRAMMAR = LineGrammar(
    name="HIDR",
    kinds=(CADUSIH, USITVIAG, POLCOT, POLARE, POLJUS, COEFEVA, CADCONJ),
    comment_prefixes=("&",),
)

__all__ = ["DEFAULT_POSTO_RANGE", "RECORD_SIZE", "TEXT_GRAMMAR", "binary_layout"]
