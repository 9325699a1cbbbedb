"""
Domain models for DESSEM ingestion.

Every record kind decodes into a frozen pydantic `Entity`. Entities declare,
as class-level metadata, what the cross-reference validator needs to know
about them:

- `key_fields`: fields forming the primary or composite key, unique per kind
  within one file;
- `key_domain` / `domain_field`: the shared key space other entities refer to
  (``hydro_plant``, ``subsystem``...), pooled across every parsed file;
- `references`: field name -> key domain it must resolve in;
- `cascade_field`: self reference to the downstream entity of the same kind;
- `bounds`: (minimum, maximum) field pairs where minimum <= maximum.

Blank source columns become `None`; zero and empty strings are real data.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Dict, Iterator, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

# Stage days hold a day of month or the I/F study markers.
StageDay = Optional[Union[int, str]]


class Entity(BaseModel):
    """Base class of every parsed entity."""

    tag: ClassVar[str] = ""
    key_fields: ClassVar[Tuple[str, ...]] = ()
    key_domain: ClassVar[Optional[str]] = None
    domain_field: ClassVar[Optional[str]] = None
    references: ClassVar[Dict[str, str]] = {}
    cascade_field: ClassVar[Optional[str]] = None
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    source_line: Optional[int] = Field(
        None, description="Line number, or 1-based record index for binary files."
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "populate_by_name": True,
    }

    @classmethod
    def from_values(cls, values: Mapping[str, Any], **extra: Any) -> "Entity":
        return cls(**dict(values), **extra)

    def key(self) -> Optional[Tuple[Any, ...]]:
        if not self.key_fields:
            return None
        return tuple(getattr(self, name) for name in self.key_fields)

    def domain_key(self) -> Any:
        """Value other entities use to refer to this one."""
        if self.key_domain is None:
            return None
        name = self.domain_field or self.key_fields[0]
        return getattr(self, name)

    def children(self) -> Iterator["Entity"]:
        """Sub-entities attached to a composite, in source line order."""
        attached = [
            item
            for name in type(self).model_fields
            if isinstance(getattr(self, name), tuple)
            for item in getattr(self, name)
            if isinstance(item, Entity)
        ]
        return iter(sorted(attached, key=lambda child: child.source_line or 0))


class StageWindow(Entity):
    """Mixin fields for records valid between two stages."""

    start_day: StageDay = None
    start_hour: Optional[int] = None
    start_half: Optional[int] = None
    end_day: StageDay = None
    end_hour: Optional[int] = None
    end_half: Optional[int] = None


# ---------------------------------------------------------------------------
# ENTDADOS
# ---------------------------------------------------------------------------


class TimePeriod(Entity):
    """TM: one study time period."""

    tag: ClassVar[str] = "TM"
    key_fields: ClassVar[Tuple[str, ...]] = ("day", "hour", "half_hour")

    day: Optional[int] = None
    hour: Optional[int] = None
    half_hour: Optional[int] = None
    duration: Optional[float] = Field(None, description="Duration in hours.")
    network_flag: Optional[int] = None
    load_level: Optional[str] = None


class Subsystem(Entity):
    tag: ClassVar[str] = "SIST"
    key_fields: ClassVar[Tuple[str, ...]] = ("number",)
    key_domain: ClassVar[Optional[str]] = "subsystem"

    number: Optional[int] = None
    code: Optional[str] = None
    status: Optional[int] = None
    name: Optional[str] = None


class EnergyReservoir(Entity):
    """REE: equivalent energy reservoir."""

    tag: ClassVar[str] = "REE"
    key_fields: ClassVar[Tuple[str, ...]] = ("ree",)
    key_domain: ClassVar[Optional[str]] = "ree"
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}

    ree: Optional[int] = None
    subsystem: Optional[int] = None
    name: Optional[str] = None


class HydroPlant(Entity):
    """UH: hydro plant configuration for the study."""

    tag: ClassVar[str] = "UH"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    key_domain: ClassVar[Optional[str]] = "hydro_plant"
    references: ClassVar[Dict[str, str]] = {"ree": "ree"}

    plant: Optional[int] = None
    name: Optional[str] = None
    ree: Optional[int] = None
    initial_volume_pct: Optional[float] = Field(None, description="Initial volume, % useful.")
    volume_unit: Optional[int] = None
    min_volume: Optional[float] = None
    spillway_crest: Optional[float] = None
    diversion_crest: Optional[float] = None


class TravelTime(Entity):
    """TVIAG: water travel time between two hydro elements."""

    tag: ClassVar[str] = "TVIAG"
    key_fields: ClassVar[Tuple[str, ...]] = ("upstream", "downstream")
    references: ClassVar[Dict[str, str]] = {"upstream": "hydro_plant"}

    upstream: Optional[int] = None
    downstream: Optional[int] = None
    element_type: Optional[str] = None
    duration: Optional[int] = None
    travel_type: Optional[int] = None


class ThermalPlant(Entity):
    """UT: thermal plant availability window."""

    tag: ClassVar[str] = "UT"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "start_day", "start_hour", "start_half")
    key_domain: ClassVar[Optional[str]] = "thermal_plant"
    domain_field: ClassVar[Optional[str]] = "plant"
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_generation", "max_generation"),)

    plant: Optional[int] = None
    name: Optional[str] = None
    status: Optional[int] = None
    subsystem: Optional[int] = None
    start_day: StageDay = None
    start_hour: Optional[int] = None
    start_half: Optional[int] = None
    end_day: StageDay = None
    end_hour: Optional[int] = None
    end_half: Optional[int] = None
    min_generation: Optional[float] = None
    max_generation: Optional[float] = None


class PumpStation(Entity):
    """USIE: pumping station between two reservoirs."""

    tag: ClassVar[str] = "USIE"
    key_fields: ClassVar[Tuple[str, ...]] = ("station",)
    references: ClassVar[Dict[str, str]] = {
        "subsystem": "subsystem",
        "upstream": "hydro_plant",
        "downstream": "hydro_plant",
    }
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_pump_flow", "max_pump_flow"),)

    station: Optional[int] = None
    subsystem: Optional[int] = None
    name: Optional[str] = None
    upstream: Optional[int] = None
    downstream: Optional[int] = None
    min_pump_flow: Optional[float] = None
    max_pump_flow: Optional[float] = None
    consumption: Optional[float] = None


class Demand(StageWindow):
    """DP: subsystem demand for a stage window."""

    tag: ClassVar[str] = "DP"
    key_fields: ClassVar[Tuple[str, ...]] = ("subsystem", "start_day", "start_hour", "start_half")
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}

    subsystem: Optional[int] = None
    demand: Optional[float] = Field(None, description="Demand in MW.")


class DiversionRate(StageWindow):
    tag: ClassVar[str] = "DA"
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    rate: Optional[float] = None


class HydroMaintenance(StageWindow):
    tag: ClassVar[str] = "MH"
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    group: Optional[int] = None
    unit: Optional[int] = None
    available: Optional[int] = None


class ThermalMaintenance(StageWindow):
    tag: ClassVar[str] = "MT"
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}

    plant: Optional[int] = None
    unit: Optional[int] = None
    available: Optional[int] = None


class ElectricalConstraint(StageWindow):
    """RE: electrical constraint declaration."""

    tag: ClassVar[str] = "RE"
    key_fields: ClassVar[Tuple[str, ...]] = ("code",)
    key_domain: ClassVar[Optional[str]] = "electrical_constraint"

    code: Optional[int] = None


class ConstraintBounds(StageWindow):
    """LU: limits of an electrical constraint."""

    tag: ClassVar[str] = "LU"
    key_fields: ClassVar[Tuple[str, ...]] = ("code", "start_day", "start_hour", "start_half")
    references: ClassVar[Dict[str, str]] = {"code": "electrical_constraint"}
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("lower", "upper"),)

    code: Optional[int] = None
    lower: Optional[float] = None
    upper: Optional[float] = None


class Interchange(Entity):
    """IA: interchange capacity between two subsystems, by code."""

    tag: ClassVar[str] = "IA"
    key_fields: ClassVar[Tuple[str, ...]] = ("from_code", "to_code")

    from_code: Optional[str] = None
    to_code: Optional[str] = None
    capacity_from_to: Optional[float] = None
    capacity_to_from: Optional[float] = None


class DeficitCost(Entity):
    tag: ClassVar[str] = "CD"
    key_fields: ClassVar[Tuple[str, ...]] = ("subsystem", "curve")
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}

    subsystem: Optional[int] = None
    curve: Optional[int] = None
    cost: Optional[float] = None
    upper_limit: Optional[float] = None


class RenewableVariation(Entity):
    tag: ClassVar[str] = "RIVAR"

    entity_code: Optional[int] = None
    to_system: Optional[int] = None
    variable_type: Optional[int] = None
    penalty: Optional[float] = None


class ItaipuRestriction(StageWindow):
    """RI: Itaipu generation limits for the 50 Hz and 60 Hz sectors."""

    tag: ClassVar[str] = "RI"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("gen_min_50", "gen_max_50"),
        ("gen_min_60", "gen_max_60"),
    )

    gen_min_50: Optional[float] = None
    gen_max_50: Optional[float] = None
    gen_min_60: Optional[float] = None
    gen_max_60: Optional[float] = None
    ande_load: Optional[float] = None


class ConstraintCoefficient(StageWindow):
    """Coefficient of one variable in an electrical constraint (RE)."""

    references: ClassVar[Dict[str, str]] = {"code": "electrical_constraint"}

    code: Optional[int] = None
    coefficient: Optional[float] = None


class HydroCoefficient(ConstraintCoefficient):
    tag: ClassVar[str] = "FH"
    references: ClassVar[Dict[str, str]] = {
        "code": "electrical_constraint",
        "plant": "hydro_plant",
    }

    plant: Optional[int] = None
    group: Optional[int] = None


class ThermalCoefficient(ConstraintCoefficient):
    tag: ClassVar[str] = "FT"
    references: ClassVar[Dict[str, str]] = {
        "code": "electrical_constraint",
        "plant": "thermal_plant",
    }

    plant: Optional[int] = None


class InterchangeCoefficient(ConstraintCoefficient):
    """FI: interchange flow between two subsystems, by code."""

    tag: ClassVar[str] = "FI"

    from_code: Optional[str] = None
    to_code: Optional[str] = None


class ContractCoefficient(ConstraintCoefficient):
    tag: ClassVar[str] = "FE"
    references: ClassVar[Dict[str, str]] = {
        "code": "electrical_constraint",
        "contract": "energy_contract",
    }

    contract: Optional[int] = None


class RenewableCoefficient(ConstraintCoefficient):
    tag: ClassVar[str] = "FR"
    references: ClassVar[Dict[str, str]] = {
        "code": "electrical_constraint",
        "plant": "renewable_plant",
    }

    plant: Optional[int] = None


class SpecialDemandCoefficient(ConstraintCoefficient):
    tag: ClassVar[str] = "FC"
    references: ClassVar[Dict[str, str]] = {
        "code": "electrical_constraint",
        "demand": "special_demand",
    }

    demand: Optional[int] = None


class DiscountRate(Entity):
    """TX: annual discount rate, in percent."""

    tag: ClassVar[str] = "TX"

    rate: Optional[float] = None


class CouplingVolume(Entity):
    """EZ: useful volume share used to couple with the future cost function."""

    tag: ClassVar[str] = "EZ"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    volume_pct: Optional[float] = None


class DownstreamGaugeLimits(StageWindow):
    """R11: level variation limits at the Itaipu downstream gauge (regua 11)."""

    tag: ClassVar[str] = "R11"

    initial_level: Optional[float] = None
    max_hourly_variation: Optional[float] = None
    max_daily_variation: Optional[float] = None


class ProductionFunctionSettings(Entity):
    """FP: how the hydro production function of a plant is approximated."""

    tag: ClassVar[str] = "FP"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    volume_treatment: Optional[int] = None
    turbine_points: Optional[int] = None
    volume_points: Optional[int] = None
    check_concavity: Optional[int] = None
    least_squares: Optional[int] = None
    volume_window_pct: Optional[float] = None
    deviation_tolerance: Optional[float] = None


class RiverSection(Entity):
    """SECR: river section and the upstream plants whose outflow reaches it."""

    tag: ClassVar[str] = "SECR"
    key_fields: ClassVar[Tuple[str, ...]] = ("section",)
    key_domain: ClassVar[Optional[str]] = "river_section"
    references: ClassVar[Dict[str, str]] = {
        f"upstream_{i}": "hydro_plant" for i in range(1, 6)
    }

    section: Optional[int] = None
    name: Optional[str] = None
    upstream_1: Optional[int] = None
    share_1: Optional[float] = None
    upstream_2: Optional[int] = None
    share_2: Optional[float] = None
    upstream_3: Optional[int] = None
    share_3: Optional[float] = None
    upstream_4: Optional[int] = None
    share_4: Optional[float] = None
    upstream_5: Optional[int] = None
    share_5: Optional[float] = None


class SectionRatingCurve(Entity):
    """CR: polynomial giving the level of a river section from its flow."""

    tag: ClassVar[str] = "CR"
    key_fields: ClassVar[Tuple[str, ...]] = ("section",)
    references: ClassVar[Dict[str, str]] = {"section": "river_section"}

    section: Optional[int] = None
    name: Optional[str] = None
    degree: Optional[int] = None
    a0: Optional[float] = None
    a1: Optional[float] = None
    a2: Optional[float] = None
    a3: Optional[float] = None
    a4: Optional[float] = None
    a5: Optional[float] = None
    a6: Optional[float] = None

    def coefficients(self) -> Tuple[float, ...]:
        values = (self.a0, self.a1, self.a2, self.a3, self.a4, self.a5, self.a6)
        return tuple(v or 0.0 for v in values[: (self.degree or 0) + 1])


class HydroRegistryChange(Entity):
    """AC: override of one hydro registry attribute; the values stay as written."""

    tag: ClassVar[str] = "AC"
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    change: Optional[str] = Field(None, description="Mnemonic of the overridden attribute.")
    values: Optional[str] = None


class AggregateGroup(Entity):
    tag: ClassVar[str] = "AG"
    key_fields: ClassVar[Tuple[str, ...]] = ("group_type", "group_id")

    group_type: Optional[str] = None
    group_id: Optional[int] = None
    description: Optional[str] = None


class FloodControlVolume(StageWindow):
    """VE: flood control volume, % of useful volume."""

    tag: ClassVar[str] = "VE"
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    volume: Optional[float] = None


class EnergyContract(StageWindow):
    key_fields: ClassVar[Tuple[str, ...]] = ("contract", "start_day", "start_hour", "start_half")
    key_domain: ClassVar[Optional[str]] = "energy_contract"
    domain_field: ClassVar[Optional[str]] = "contract"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_value", "max_value"),)

    contract: Optional[int] = None
    name: Optional[str] = None
    year: Optional[int] = None
    submarket: Optional[int] = None
    modulation: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    inflexibility: Optional[float] = None
    priority: Optional[float] = None
    availability: Optional[int] = None
    cost: Optional[float] = None


class ExportContract(EnergyContract):
    tag: ClassVar[str] = "CE"


class ImportContract(EnergyContract):
    tag: ClassVar[str] = "CI"


class SpecialDemand(Entity):
    """DE: special demand referenced by FC coefficients."""

    tag: ClassVar[str] = "DE"
    key_fields: ClassVar[Tuple[str, ...]] = ("demand",)
    key_domain: ClassVar[Optional[str]] = "special_demand"

    demand: Optional[int] = None
    description: Optional[str] = None


class NetworkOption(Entity):
    tag: ClassVar[str] = "NI"

    option: Optional[str] = None


class NetworkSettings(Entity):
    """RD: electrical network representation flags."""

    tag: ClassVar[str] = "RD"

    slack: Optional[int] = None
    max_circuits: Optional[int] = None
    load_by_bus: Optional[int] = None
    ignore_buses: Optional[int] = None
    circuit_limits: Optional[int] = None
    losses: Optional[int] = None
    network_format: Optional[int] = None


class SolverGaps(Entity):
    """GP: relative convergence gaps of the decomposition and MILP passes."""

    tag: ClassVar[str] = "GP"

    gap_decomposition: Optional[float] = None
    gap_milp: Optional[float] = None


# ---------------------------------------------------------------------------
# HIDR (text registry)
# ---------------------------------------------------------------------------


class HydroRegistry(Entity):
    """CADUSIH: hydro plant registry entry."""

    tag: ClassVar[str] = "CADUSIH"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    key_domain: ClassVar[Optional[str]] = "hydro_plant"
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}
    cascade_field: ClassVar[Optional[str]] = "downstream"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_volume", "max_volume"),)

    plant: Optional[int] = None
    name: Optional[str] = None
    subsystem: Optional[int] = None
    commission_date: Optional[date] = None
    downstream: Optional[int] = Field(None, description="Downstream plant; None at the outlet.")
    diversion: Optional[int] = None
    plant_type: Optional[int] = None
    min_volume: Optional[float] = None
    max_volume: Optional[float] = None
    max_turbine_flow: Optional[float] = None
    capacity: Optional[float] = None
    productivity: Optional[float] = None


class HydroTravelTime(Entity):
    tag: ClassVar[str] = "USITVIAG"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "downstream")
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant", "downstream": "hydro_plant"}

    plant: Optional[int] = None
    downstream: Optional[int] = None
    travel_time: Optional[float] = None


class HydroPolynomial(Entity):
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    degree: Optional[int] = None
    coef0: Optional[float] = None
    coef1: Optional[float] = None
    coef2: Optional[float] = None
    coef3: Optional[float] = None
    coef4: Optional[float] = None
    coef5: Optional[float] = None

    def coefficients(self) -> Tuple[float, ...]:
        values = (self.coef0, self.coef1, self.coef2, self.coef3, self.coef4, self.coef5)
        return tuple(v or 0.0 for v in values)


class VolumeElevationPolynomial(HydroPolynomial):
    tag: ClassVar[str] = "POLCOT"


class ElevationAreaPolynomial(HydroPolynomial):
    tag: ClassVar[str] = "POLARE"


class TailracePolynomial(HydroPolynomial):
    tag: ClassVar[str] = "POLJUS"
    key_fields: ClassVar[Tuple[str, ...]] = ()


class EvaporationCoefficients(Entity):
    tag: ClassVar[str] = "COEFEVA"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    jan: Optional[float] = None
    feb: Optional[float] = None
    mar: Optional[float] = None
    apr: Optional[float] = None
    may: Optional[float] = None
    jun: Optional[float] = None
    jul: Optional[float] = None
    aug: Optional[float] = None
    sep: Optional[float] = None
    oct: Optional[float] = None
    nov: Optional[float] = None
    dec: Optional[float] = None


class UnitSet(Entity):
    tag: ClassVar[str] = "CADCONJ"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "unit_set")
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    unit_set: Optional[int] = None
    num_units: Optional[int] = None
    unit_capacity: Optional[float] = None
    min_generation: Optional[float] = None
    max_turbine_flow: Optional[float] = None


# ---------------------------------------------------------------------------
# HIDR (binary registry, 792-byte records)
# ---------------------------------------------------------------------------


class HydroPlantRecord(Entity):
    """
    One fixed-stride record of the binary plant registry.

    The record index (1-based) is the plant number used by every other file.
    Bytes 196-495 carry no documented meaning and are kept verbatim in
    `reserved`.
    """

    tag: ClassVar[str] = "HIDR"
    key_fields: ClassVar[Tuple[str, ...]] = ("index",)
    key_domain: ClassVar[Optional[str]] = "hydro_plant"
    cascade_field: ClassVar[Optional[str]] = "downstream"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_volume", "max_volume"),)

    index: int
    name: Optional[str] = None
    posto: int = 0
    posto_bdh: int = 0
    subsystem: int = 0
    company: int = 0
    downstream: Optional[int] = None
    diversion: Optional[int] = None
    min_volume: float = 0.0
    max_volume: float = 0.0
    spillway_volume: float = 0.0
    diversion_volume: float = 0.0
    min_elevation: float = 0.0
    max_elevation: float = 0.0
    volume_elevation_poly: Tuple[float, ...] = ()
    elevation_area_poly: Tuple[float, ...] = ()
    evaporation: Tuple[int, ...] = ()
    unit_sets: int = 0
    machines_per_set: Tuple[int, ...] = ()
    nominal_power: Tuple[float, ...] = ()
    reserved: bytes = b""
    nominal_head: Tuple[float, ...] = ()
    nominal_flow: Tuple[int, ...] = ()
    productivity: float = 0.0
    losses: float = 0.0
    tailrace_poly_count: int = 0
    tailrace_polys: Tuple[float, ...] = ()
    tailrace_reference: float = 0.0
    influence: int = 0
    max_load_factor: float = 0.0
    min_load_factor: float = 0.0
    min_flow: int = 0
    base_units: int = 0
    turbine_type: int = 0
    set_representation: int = 0
    teif: float = 0.0
    ip: float = 0.0
    loss_type: int = 0
    reference_date: Optional[str] = None
    notes: Optional[str] = None
    reference_volume: float = 0.0
    regulation: Optional[str] = None

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "ser_json_bytes": "base64",
    }

    @property
    def is_empty(self) -> bool:
        """Unused registry slots carry no name and posto zero."""
        return not self.name and self.posto == 0


# ---------------------------------------------------------------------------
# TERMDAT
# ---------------------------------------------------------------------------


class ThermalRegistry(Entity):
    """CADUSIT: thermal plant registry entry."""

    tag: ClassVar[str] = "CADUSIT"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    key_domain: ClassVar[Optional[str]] = "thermal_plant"
    references: ClassVar[Dict[str, str]] = {"subsystem": "subsystem"}

    plant: Optional[int] = None
    name: Optional[str] = None
    subsystem: Optional[int] = None
    commission_date: Optional[date] = None
    plant_class: Optional[int] = None
    fuel: Optional[int] = None
    num_units: Optional[int] = None


class ThermalUnit(Entity):
    tag: ClassVar[str] = "CADUNIDT"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "unit")
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_generation", "capacity"),)

    plant: Optional[int] = None
    unit: Optional[int] = None
    commission_date: Optional[date] = None
    commission_hour: Optional[int] = None
    unit_class: Optional[int] = None
    capacity: Optional[float] = None
    min_generation: Optional[float] = None
    min_on_time: Optional[int] = None
    min_off_time: Optional[int] = None


class HeatRateCurve(Entity):
    tag: ClassVar[str] = "CURVACOMB"
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}

    plant: Optional[int] = None
    unit: Optional[int] = None
    heat_rate: Optional[int] = None
    generation: Optional[float] = None


# ---------------------------------------------------------------------------
# OPERUH (composite hydro constraints)
# ---------------------------------------------------------------------------


class HydroConstraintElement(Entity):
    """ELEM: plant participating in a hydro constraint."""

    tag: ClassVar[str] = "ELEM"
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    constraint_id: Optional[int] = None
    plant: Optional[int] = None
    plant_name: Optional[str] = None
    variable: Optional[int] = None
    factor: Optional[float] = None


class HydroConstraintLimit(StageWindow):
    tag: ClassVar[str] = "LIM"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("lower", "upper"),)

    constraint_id: Optional[int] = None
    lower: Optional[float] = None
    upper: Optional[float] = None


class HydroConstraintRamp(StageWindow):
    tag: ClassVar[str] = "VAR"
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("lower_ramp", "upper_ramp"),)

    constraint_id: Optional[int] = None
    lower_ramp: Optional[float] = None
    upper_ramp: Optional[float] = None
    lower_ramp_pct: Optional[float] = None
    upper_ramp_pct: Optional[float] = None


class HydroConstraint(Entity):
    """
    REST: a hydro operational constraint with its attached sub-records.

    ELEM, LIM and VAR lines sharing the constraint id are grouped here in
    source order.
    """

    tag: ClassVar[str] = "REST"
    key_fields: ClassVar[Tuple[str, ...]] = ("constraint_id",)
    key_domain: ClassVar[Optional[str]] = "hydro_constraint"

    constraint_id: Optional[int] = None
    type_flag: Optional[str] = None
    variable: Optional[str] = None
    initial_value: Optional[float] = None
    penalty: Optional[float] = None
    elements: Tuple[HydroConstraintElement, ...] = ()
    limits: Tuple[HydroConstraintLimit, ...] = ()
    ramps: Tuple[HydroConstraintRamp, ...] = ()


# ---------------------------------------------------------------------------
# OPERUT, AREACONT, RAMPAS (keyword blocks)
# ---------------------------------------------------------------------------


class ThermalInitialState(Entity):
    """INIT block row: initial commitment state of a thermal unit."""

    tag: ClassVar[str] = "INIT"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "unit")
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}

    plant: Optional[int] = None
    plant_name: Optional[str] = None
    unit: Optional[int] = None
    status: Optional[int] = None
    initial_generation: Optional[float] = None
    hours_in_state: Optional[int] = None
    mh_flag: Optional[int] = None
    ad_flag: Optional[int] = None
    t_flag: Optional[int] = None
    inflexible_generation: Optional[float] = None


class ThermalOperation(StageWindow):
    """OPER block row: generation limits and cost of a thermal unit."""

    tag: ClassVar[str] = "OPER"
    key_fields: ClassVar[Tuple[str, ...]] = (
        "plant",
        "unit",
        "start_day",
        "start_hour",
        "start_half",
    )
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}
    bounds: ClassVar[Tuple[Tuple[str, str], ...]] = (("min_generation", "max_generation"),)

    plant: Optional[int] = None
    plant_name: Optional[str] = None
    unit: Optional[int] = None
    min_generation: Optional[float] = None
    max_generation: Optional[float] = None
    cost: Optional[float] = None


class ControlArea(Entity):
    tag: ClassVar[str] = "AREA"
    key_fields: ClassVar[Tuple[str, ...]] = ("area",)
    key_domain: ClassVar[Optional[str]] = "control_area"

    area: Optional[int] = None
    name: Optional[str] = None


class ControlAreaMember(Entity):
    tag: ClassVar[str] = "USINA"
    key_fields: ClassVar[Tuple[str, ...]] = ("area", "member_type", "component")
    references: ClassVar[Dict[str, str]] = {"area": "control_area"}

    area: Optional[int] = None
    member_type: Optional[str] = Field(None, description="H (hydro) or T (thermal).")
    component: Optional[int] = None
    name: Optional[str] = None


class ThermalRamp(Entity):
    """RAMP block row: one point of a unit's ramp trajectory."""

    tag: ClassVar[str] = "RAMP"
    references: ClassVar[Dict[str, str]] = {"plant": "thermal_plant"}

    plant: Optional[int] = None
    unit: Optional[int] = None
    configuration: Optional[str] = None
    ramp_type: Optional[str] = None
    power: Optional[float] = None
    time: Optional[int] = None
    flag: Optional[int] = None


# ---------------------------------------------------------------------------
# DEFLANT, PTOPER, RESPOT
# ---------------------------------------------------------------------------


class PreviousOutflow(StageWindow):
    """DEFANT: outflow of an upstream plant before the study starts."""

    tag: ClassVar[str] = "DEFANT"
    key_fields: ClassVar[Tuple[str, ...]] = (
        "upstream",
        "downstream",
        "start_day",
        "start_hour",
        "start_half",
    )
    references: ClassVar[Dict[str, str]] = {"upstream": "hydro_plant"}

    upstream: Optional[int] = None
    downstream: Optional[int] = None
    element_type: Optional[str] = Field(None, description="H (hydro plant) or S (river section).")
    flow: Optional[float] = Field(None, description="Outflow in m3/s.")


class OperatingPoint(StageWindow):
    """PTOPER: value imposed on one variable of a plant."""

    tag: ClassVar[str] = "PTOPER"

    element_type: Optional[str] = None
    element: Optional[int] = None
    variable: Optional[str] = None
    value: Optional[float] = None


class PowerReserveLimit(StageWindow):
    tag: ClassVar[str] = "LM"

    area: Optional[int] = None
    lower: Optional[float] = Field(None, description="Minimum reserve in MW.")


class PowerReserve(StageWindow):
    """RP: reserve pool of a control area, with its LM limits."""

    tag: ClassVar[str] = "RP"
    key_fields: ClassVar[Tuple[str, ...]] = ("area", "start_day", "start_hour", "start_half")
    references: ClassVar[Dict[str, str]] = {"area": "control_area"}

    area: Optional[int] = None
    description: Optional[str] = None
    limits: Tuple[PowerReserveLimit, ...] = ()


# ---------------------------------------------------------------------------
# DADVAZ
# ---------------------------------------------------------------------------


class InflowStudyHeader(Entity):
    """
    Labelled header of the natural inflow file.

    `plant_numbers` lists the registry numbers of the plants whose inflows
    follow, in the order of the header.
    """

    tag: ClassVar[str] = "VAZHDR"

    plant_count: Optional[int] = None
    plant_numbers: Tuple[int, ...] = ()
    study_start: Optional[datetime] = None
    initial_weekday: Optional[int] = Field(None, description="1 (Saturday) to 7 (Friday).")
    fcf_week: Optional[int] = None
    study_weeks: Optional[int] = None
    simulation_flag: Optional[int] = None


class NaturalInflow(StageWindow):
    """Natural inflow of one plant for a stage window."""

    tag: ClassVar[str] = "VAZAO"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "start_day", "start_hour", "start_half")
    references: ClassVar[Dict[str, str]] = {"plant": "hydro_plant"}

    plant: Optional[int] = None
    name: Optional[str] = None
    inflow_type: Optional[int] = None
    flow: Optional[float] = Field(None, description="Inflow in m3/s.")


# ---------------------------------------------------------------------------
# RENOVAVEIS (semicolon-delimited)
# ---------------------------------------------------------------------------


class RenewablePlant(Entity):
    """EOLICA: renewable plant registration."""

    tag: ClassVar[str] = "EOLICA"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    key_domain: ClassVar[Optional[str]] = "renewable_plant"

    plant: Optional[int] = None
    name: Optional[str] = None
    max_power: Optional[float] = None
    capacity_factor: Optional[float] = None
    registered: Optional[int] = None


class RenewableSubsystem(Entity):
    tag: ClassVar[str] = "EOLICASUBM"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "renewable_plant"}

    plant: Optional[int] = None
    subsystem: Optional[str] = Field(None, description="Subsystem code (SE, S, NE, N).")


class RenewableBus(Entity):
    tag: ClassVar[str] = "EOLICABARRA"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant",)
    references: ClassVar[Dict[str, str]] = {"plant": "renewable_plant"}

    plant: Optional[int] = None
    bus: Optional[int] = None


class RenewableGeneration(StageWindow):
    """EOLICA-GERACAO: generation forecast of a renewable plant."""

    tag: ClassVar[str] = "EOLICA-GERACAO"
    key_fields: ClassVar[Tuple[str, ...]] = ("plant", "start_day", "start_hour", "start_half")
    references: ClassVar[Dict[str, str]] = {"plant": "renewable_plant"}

    plant: Optional[int] = None
    generation: Optional[float] = None


# ---------------------------------------------------------------------------
# DESSEM.ARQ
# ---------------------------------------------------------------------------


class CaseFileEntry(Entity):
    """One line of the case index: which file holds a given input."""

    tag: ClassVar[str] = "ARQ"
    key_fields: ClassVar[Tuple[str, ...]] = ("mnemonic",)

    mnemonic: Optional[str] = None
    description: Optional[str] = None
    filename: Optional[str] = None


__all__ = [
    "AggregateGroup",
    "CaseFileEntry",
    "ConstraintBounds",
    "ConstraintCoefficient",
    "ContractCoefficient",
    "CouplingVolume",
    "DiscountRate",
    "DownstreamGaugeLimits",
    "EnergyContract",
    "ExportContract",
    "FloodControlVolume",
    "HydroCoefficient",
    "HydroRegistryChange",
    "ImportContract",
    "InflowStudyHeader",
    "InterchangeCoefficient",
    "NaturalInflow",
    "NetworkOption",
    "NetworkSettings",
    "OperatingPoint",
    "PowerReserve",
    "PowerReserveLimit",
    "PreviousOutflow",
    "ProductionFunctionSettings",
    "RenewableBus",
    "RenewableCoefficient",
    "RenewableGeneration",
    "RenewablePlant",
    "RenewableSubsystem",
    "RiverSection",
    "SectionRatingCurve",
    "SolverGaps",
    "SpecialDemand",
    "SpecialDemandCoefficient",
    "ThermalCoefficient",
    "ControlArea",
    "ControlAreaMember",
    "DeficitCost",
    "Demand",
    "DiversionRate",
    "ElectricalConstraint",
    "ElevationAreaPolynomial",
    "EnergyReservoir",
    "Entity",
    "EvaporationCoefficients",
    "HeatRateCurve",
    "HydroConstraint",
    "HydroConstraintElement",
    "HydroConstraintLimit",
    "HydroConstraintRamp",
    "HydroMaintenance",
    "HydroPlant",
    "HydroPlantRecord",
    "HydroPolynomial",
    "HydroRegistry",
    "HydroTravelTime",
    "Interchange",
    "ItaipuRestriction",
    "PumpStation",
    "RenewableVariation",
    "StageDay",
    "StageWindow",
    "Subsystem",
    "TailracePolynomial",
    "ThermalInitialState",
    "ThermalMaintenance",
    "ThermalOperation",
    "ThermalPlant",
    "ThermalRamp",
    "ThermalRegistry",
    "ThermalUnit",
    "TimePeriod",
    "TravelTime",
    "UnitSet",
    "VolumeElevationPolynomial",
]
