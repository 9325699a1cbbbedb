"""
OPERUH: hydro operational constraints.

Every line starts with ``OPERUH`` followed by a sub-record marker. A ``REST``
line declares a constraint; ``ELEM``, ``LIM`` and ``VAR`` lines carrying the
same constraint id attach to it. The whole file is a single block closed by
the end of input.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import FieldSpec, decimal, integer, string
from dessem_ingest.grammar.records import (
    BlockGrammar,
    BlockKind,
    RecordKind,
    Role,
    SubRecord,
    stage_fields,
)


def _constraint_id() -> FieldSpec:
    return integer("constraint_id", 15, 19, zero_pad=True)


REST = RecordKind(
    "REST",
    "REST",
    (
        _constraint_id(),
        string("type_flag", 22, 22),
        string("variable", 28, 31),
        decimal("initial_value", 40, 51, decimals=2),
        decimal("penalty", 52, 63, decimals=2),
    ),
    models.HydroConstraint,
)

ELEM = RecordKind(
    "ELEM",
    "ELEM",
    (
        _constraint_id(),
        integer("plant", 21, 23),
        string("plant_name", 26, 37),
        integer("variable", 41, 42),
        decimal("factor", 44, 48),
    ),
    models.HydroConstraintElement,
)

LIM = RecordKind(
    "LIM",
    "LIM",
    (
        _constraint_id(),
        *stage_fields("start", 20),
        *stage_fields("end", 28),
        decimal("lower", 38, 47, decimals=2),
        decimal("upper", 48, 57, decimals=2),
    ),
    models.HydroConstraintLimit,
)

VAR = RecordKind(
    "VAR",
    "VAR",
    (
        _constraint_id(),
        *stage_fields("start", 20),
        *stage_fields("end", 28),
        decimal("lower_ramp", 38, 47, decimals=2),
        decimal("upper_ramp", 48, 57, decimals=2),
        decimal("lower_ramp_pct", 58, 67, decimals=2),
        decimal("upper_ramp_pct", 68, 77, decimals=2),
    ),
    models.HydroConstraintRamp,
)

CONSTRAINTS = BlockKind(
    "CONSTRAINTS",
    subrecords=(
        SubRecord(REST, Role.LEADING, "constraint_id"),
        SubRecord(ELEM, Role.DEPENDENT, "constraint_id", attach_as="elements"),
        SubRecord(LIM, Role.DEPENDENT, "constraint_id", attach_as="limits"),
        SubRecord(VAR, Role.DEPENDENT, "constraint_id", attach_as="ramps"),
    ),
)

GRAMMAR = BlockGrammar(
    name="OPERUH",
    blocks=(CONSTRAINTS,),
    terminator=None,
    line_prefix="OPERUH",
)

__all__ = ["GRAMMAR"]
