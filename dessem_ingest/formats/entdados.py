"""
ENTDADOS: general study data.

One record per line, selected by a 2 to 5 character tag. Several tags share
a prefix (``RE``/``REE``, ``RI``/``RIVA``/``RIVAR``), which the longest-first
discriminator table resolves.
"""

from __future__ import annotations

from typing import Type

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import FieldSpec, decimal, integer, string
from dessem_ingest.grammar.records import LineGrammar, RecordKind, stage_fields

TM = RecordKind(
    "TM",
    "TM",
    (
        integer("day", 5, 6),
        integer("hour", 10, 11),
        integer("half_hour", 15, 15),
        decimal("duration", 20, 24, decimals=1),
        integer("network_flag", 30, 30),
        string("load_level", 34, 39),
    ),
    models.TimePeriod,
)

SIST = RecordKind(
    "SIST",
    "SIST",
    (
        integer("number", 8, 9),
        string("code", 11, 12),
        integer("status", 14, 14),
        string("name", 16, 25),
    ),
    models.Subsystem,
)

REE = RecordKind(
    "REE",
    "REE",
    (integer("ree", 7, 8), integer("subsystem", 10, 11), string("name", 13, 22)),
    models.EnergyReservoir,
)

UH = RecordKind(
    "UH",
    "UH",
    (
        integer("plant", 5, 7),
        string("name", 10, 21),
        integer("ree", 25, 26),
        decimal("initial_volume_pct", 30, 39, decimals=2, implied=True),
        integer("volume_unit", 40, 40),
        decimal("min_volume", 50, 59, decimals=2),
        decimal("spillway_crest", 80, 89, decimals=2),
        decimal("diversion_crest", 95, 104, decimals=2),
    ),
    models.HydroPlant,
)

TVIAG = RecordKind(
    "TVIAG",
    "TVIAG",
    (
        integer("upstream", 7, 9),
        integer("downstream", 11, 13),
        string("element_type", 15, 15),
        integer("duration", 20, 22),
        integer("travel_type", 25, 25),
    ),
    models.TravelTime,
)

UT = RecordKind(
    "UT",
    "UT",
    (
        integer("plant", 5, 7),
        string("name", 10, 21),
        integer("status", 24, 24),
        integer("subsystem", 26, 26),
        *stage_fields("start", 28),
        *stage_fields("end", 37),
        decimal("min_generation", 47, 56, decimals=2),
        decimal("max_generation", 58, 67, decimals=2),
    ),
    models.ThermalPlant,
)

USIE = RecordKind(
    "USIE",
    "USIE",
    (
        integer("station", 6, 8),
        integer("subsystem", 10, 11),
        string("name", 15, 26),
        integer("upstream", 30, 32),
        integer("downstream", 35, 37),
        decimal("min_pump_flow", 40, 49, decimals=2),
        decimal("max_pump_flow", 50, 59, decimals=2),
        decimal("consumption", 60, 69, decimals=3),
    ),
    models.PumpStation,
)

DP = RecordKind(
    "DP",
    "DP",
    (
        integer("subsystem", 5, 6),
        *stage_fields("start", 9),
        *stage_fields("end", 18),
        decimal("demand", 25, 34, decimals=1),
    ),
    models.Demand,
)

DA = RecordKind(
    "DA",
    "DA",
    (
        integer("plant", 5, 7),
        *stage_fields("start", 9),
        *stage_fields("end", 17),
        decimal("rate", 30, 41, decimals=2),
    ),
    models.DiversionRate,
)

MH = RecordKind(
    "MH",
    "MH",
    (
        integer("plant", 5, 7),
        integer("group", 10, 11),
        integer("unit", 13, 14),
        *stage_fields("start", 15),
        *stage_fields("end", 23),
        integer("available", 30, 30),
    ),
    models.HydroMaintenance,
)

MT = RecordKind(
    "MT",
    "MT",
    (
        integer("plant", 5, 7),
        integer("unit", 9, 11),
        *stage_fields("start", 14),
        *stage_fields("end", 22),
        integer("available", 30, 30),
    ),
    models.ThermalMaintenance,
)

RE = RecordKind(
    "RE",
    "RE",
    (integer("code", 5, 7), *stage_fields("start", 10), *stage_fields("end", 18)),
    models.ElectricalConstraint,
)

LU = RecordKind(
    "LU",
    "LU",
    (
        integer("code", 5, 7),
        *stage_fields("start", 9),
        *stage_fields("end", 17),
        decimal("lower", 25, 34, decimals=1),
        decimal("upper", 35, 44, decimals=1),
    ),
    models.ConstraintBounds,
)

IA = RecordKind(
    "IA",
    "IA",
    (
        string("from_code", 5, 6),
        string("to_code", 10, 11),
        decimal("capacity_from_to", 30, 39, decimals=1),
        decimal("capacity_to_from", 40, 49, decimals=1),
    ),
    models.Interchange,
)

CD = RecordKind(
    "CD",
    "CD",
    (
        integer("subsystem", 5, 6),
        integer("curve", 8, 9),
        decimal("cost", 28, 37, decimals=2),
        decimal("upper_limit", 39, 48, decimals=2),
    ),
    models.DeficitCost,
)

RIVAR = RecordKind(
    "RIVAR",
    "RIVAR",
    (
        integer("entity_code", 8, 10),
        integer("to_system", 13, 15),
        integer("variable_type", 16, 17),
        decimal("penalty", 20, 29, decimals=2),
    ),
    models.RenewableVariation,
)

RI = RecordKind(
    "RI",
    "RI",
    (
        *stage_fields("start", 9),
        *stage_fields("end", 17),
        decimal("gen_min_50", 29, 36, decimals=1),
        decimal("gen_max_50", 39, 46, decimals=1),
        decimal("gen_min_60", 49, 56, decimals=1),
        decimal("gen_max_60", 59, 66, decimals=1),
        decimal("ande_load", 69, 76, decimals=1),
    ),
    models.ItaipuRestriction,
)

# Older decks spell the renewable variation tag without its last letter.
RIVA = RecordKind("RIVA", "RIVA", RIVAR.fields, models.RenewableVariation)


def _coefficient(
    name: str,
    entity: Type[models.ConstraintCoefficient],
    stage_start: int,
    *fields: FieldSpec,
    coefficient_at: int = 35,
) -> RecordKind:
    """Constraint coefficient line: RE code, stage window, variable, coefficient."""
    return RecordKind(
        name,
        name,
        (
            integer("code", 5, 7),
            *stage_fields("start", stage_start),
            *stage_fields("end", stage_start + 8),
            *fields,
            decimal("coefficient", coefficient_at, coefficient_at + 9),
        ),
        entity,
    )


FH = _coefficient(
    "FH", models.HydroCoefficient, 9, integer("plant", 25, 27), integer("group", 29, 30)
)
FT = _coefficient("FT", models.ThermalCoefficient, 9, integer("plant", 25, 27))
FI = _coefficient(
    "FI",
    models.InterchangeCoefficient,
    9,
    string("from_code", 25, 26),
    string("to_code", 30, 31),
)
FE = _coefficient("FE", models.ContractCoefficient, 9, integer("contract", 25, 27))
FR = _coefficient(
    "FR", models.RenewableCoefficient, 11, integer("plant", 27, 31), coefficient_at=37
)
FC = _coefficient(
    "FC", models.SpecialDemandCoefficient, 11, integer("demand", 27, 29), coefficient_at=37
)

TX = RecordKind("TX", "TX", (decimal("rate", 5, 14),), models.DiscountRate)

EZ = RecordKind(
    "EZ",
    "EZ",
    (integer("plant", 5, 7), decimal("volume_pct", 10, 14)),
    models.CouplingVolume,
)

R11 = RecordKind(
    "R11",
    "R11",
    (
        *stage_fields("start", 5),
        *stage_fields("end", 13),
        decimal("initial_level", 21, 30),
        decimal("max_hourly_variation", 31, 40),
        decimal("max_daily_variation", 41, 50),
    ),
    models.DownstreamGaugeLimits,
)

FP = RecordKind(
    "FP",
    "FP",
    (
        integer("plant", 4, 6),
        integer("volume_treatment", 8, 8),
        integer("turbine_points", 11, 13),
        integer("volume_points", 16, 18),
        integer("check_concavity", 21, 21),
        integer("least_squares", 25, 25),
        decimal("volume_window_pct", 30, 39),
        decimal("deviation_tolerance", 40, 49),
    ),
    models.ProductionFunctionSettings,
)

SECR = RecordKind(
    "SECR",
    "SECR",
    (
        integer("section", 6, 8),
        string("name", 10, 21),
        *(
            spec
            for slot, start in enumerate(range(25, 66, 10), start=1)
            for spec in (
                integer(f"upstream_{slot}", start, start + 2),
                decimal(f"share_{slot}", start + 4, start + 8),
            )
        ),
    ),
    models.RiverSection,
)

CR = RecordKind(
    "CR",
    "CR",
    (
        integer("section", 5, 7),
        string("name", 10, 21),
        integer("degree", 25, 26),
        *(decimal(f"a{power}", 28 + 16 * power, 42 + 16 * power) for power in range(7)),
    ),
    models.SectionRatingCurve,
)

AC = RecordKind(
    "AC",
    "AC",
    (integer("plant", 5, 7), string("change", 10, 20), string("values", 21, 120)),
    models.HydroRegistryChange,
)

AG = RecordKind(
    "AG",
    "AG",
    (string("group_type", 5, 8), integer("group_id", 10, 12), string("description", 15, 40)),
    models.AggregateGroup,
)

VE = RecordKind(
    "VE",
    "VE",
    (
        integer("plant", 5, 7),
        *stage_fields("start", 9),
        *stage_fields("end", 17),
        decimal("volume", 26, 35),
    ),
    models.FloodControlVolume,
)


def _contract(name: str, entity: Type[models.EnergyContract]) -> RecordKind:
    return RecordKind(
        name,
        name,
        (
            integer("contract", 4, 6),
            string("name", 8, 17),
            integer("year", 19, 23),
            integer("submarket", 24, 24),
            *stage_fields("start", 26),
            *stage_fields("end", 34),
            integer("modulation", 42, 42),
            decimal("min_value", 44, 53),
            decimal("max_value", 54, 63),
            decimal("inflexibility", 64, 73),
            decimal("priority", 74, 83),
            integer("availability", 86, 86),
            decimal("cost", 89, 98),
        ),
        entity,
    )


CE = _contract("CE", models.ExportContract)
CI = _contract("CI", models.ImportContract)

DE = RecordKind(
    "DE",
    "DE",
    (integer("demand", 5, 7), string("description", 9, 40)),
    models.SpecialDemand,
)

NI = RecordKind("NI", "NI", (string("option", 5, 80),), models.NetworkOption)

RD = RecordKind(
    "RD",
    "RD",
    (
        integer("slack", 5, 5),
        integer("max_circuits", 10, 12),
        integer("load_by_bus", 15, 15),
        integer("ignore_buses", 17, 17),
        integer("circuit_limits", 19, 19),
        integer("losses", 21, 21),
        integer("network_format", 23, 23),
    ),
    models.NetworkSettings,
)

GP = RecordKind(
    "GP",
    "GP",
    (decimal("gap_decomposition", 5, 14), decimal("gap_milp", 15, 24)),
    models.SolverGaps,
)

GRAMMAR = LineGrammar(
    name="ENTDADOS",
    kinds=(
        TM, SIST, REE, UH, TVIAG, UT, USIE, DP, DA, MH, MT, RE, LU,
        FH, FT, FI, FE, FR, FC,
        IA, CD, RIVAR, RIVA, RI, TX, EZ, R11, FP, SECR, CR, AC, AG, VE,
        CE, CI, DE, NI, RD, GP,
    ),  # fmt: skip
    comment_prefixes=("&",),
)

__all__ = ["GRAMMAR"]
