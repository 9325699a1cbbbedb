"""
Sample case generator for DESSEM ingestion.

Writes a small, deterministic DESSEM case directory: one file per supported
format, rendered through the same grammars the parsers read, plus a
binary plant registry packed at the documented offsets. Every cross
reference resolves, so a clean run reports no error diagnostics unless a
cascade cycle is injected on purpose.
"""

from __future__ import annotations

import random
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import typer

from dessem_ingest.formats import (
    areacont,
    dadvaz,
    deflant,
    dessemarq,
    entdados,
    hidr,
    operuh,
    operut,
    ptoper,
    rampas,
    renovaveis,
    respot,
    termdat,
)
from dessem_ingest.grammar.fields import place
from dessem_ingest.grammar.records import RecordKind

app = typer.Typer(help="Generate a synthetic DESSEM case directory.")

SUBSYSTEMS: Tuple[Tuple[int, str, str], ...] = ((1, "SE", "SUDESTE"), (2, "S", "SUL"))
PERIODS = 4
UNITS_PER_PLANT = 2
RENEWABLE_PLANTS = 2
STUDY_START = "00  01  01  2025"

CASE_FILES = {
    "entdados.dat": "DADGER",
    "hidr.dat": "CADUSIH",
    "termdat.dat": "CADTERM",
    "operuh.dat": "OPERUH",
    "operut.dat": "OPERUT",
    "areacont.dat": "AREACONT",
    "rampas.dat": "RAMPAS",
    "deflant.dat": "DEFLANT",
    "ptoper.dat": "PTOPER",
    "respot.dat": "RESPOT",
    "dadvaz.dat": "VAZOES",
    "renovaveis.dat": "EOLICA",
}


def _render(kind: RecordKind, values: Mapping[str, Any], prefix: str = "") -> str:
    line = f"{prefix}{kind.discriminator}"
    for spec in kind.fields:
        if spec.name in values:
            line = place(line, spec, values[spec.name])
    return line.rstrip()


def _hydro_name(plant: int) -> str:
    return f"UHE-{plant:03d}"


def _thermal_name(plant: int) -> str:
    return f"UTE-{plant:03d}"


def _subsystem_of(plant: int) -> int:
    return (plant - 1) % len(SUBSYSTEMS) + 1


def _downstream(plant: int, plants: int, cycle: bool) -> int | None:
    if plant < plants:
        return plant + 1
    return 1 if cycle and plants > 1 else None


def _entdados_lines(plants: int, thermal: int, rng: random.Random) -> List[str]:
    lines = ["& ENTDADOS - synthetic case"]
    for i in range(PERIODS):
        lines.append(
            _render(
                entdados.TM,
                {
                    "day": 1,
                    "hour": i // 2,
                    "half_hour": i % 2,
                    "duration": 0.5,
                    "network_flag": 0,
                    "load_level": "LEVE",
                },
            )
        )
    for number, code, name in SUBSYSTEMS:
        lines.append(
            _render(entdados.SIST, {"number": number, "code": code, "status": 0, "name": name})
        )
    for number, _, name in SUBSYSTEMS:
        lines.append(_render(entdados.REE, {"ree": number, "subsystem": number, "name": name}))
    for plant in range(1, plants + 1):
        lines.append(
            _render(
                entdados.UH,
                {
                    "plant": plant,
                    "name": _hydro_name(plant),
                    "ree": _subsystem_of(plant),
                    "initial_volume_pct": round(rng.uniform(20, 90), 2),
                    "volume_unit": 1,
                },
            )
        )
    if plants > 1:
        lines.append(
            _render(
                entdados.TVIAG,
                {
                    "upstream": 1,
                    "downstream": 2,
                    "element_type": "H",
                    "duration": 24,
                    "travel_type": 1,
                },
            )
        )
    for plant in range(1, thermal + 1):
        minimum = float(rng.randint(0, 50))
        lines.append(
            _render(
                entdados.UT,
                {
                    "plant": plant,
                    "name": _thermal_name(plant),
                    "status": 0,
                    "subsystem": _subsystem_of(plant),
                    "start_day": "I",
                    "end_day": "F",
                    "min_generation": minimum,
                    "max_generation": minimum + rng.randint(100, 500),
                },
            )
        )
    for number, _, _ in SUBSYSTEMS:
        for i in range(PERIODS):
            lines.append(
                _render(
                    entdados.DP,
                    {
                        "subsystem": number,
                        "start_day": 1,
                        "start_hour": i // 2,
                        "start_half": i % 2,
                        "end_day": "F",
                        "demand": float(rng.randint(5_000, 40_000)),
                    },
                )
            )
    lines.append(
        _render(entdados.DA, {"plant": 1, "start_day": "I", "end_day": "F", "rate": 1.5})
    )
    if thermal:
        lines.append(
            _render(
                entdados.MT,
                {"plant": 1, "unit": 1, "start_day": "I", "end_day": "F", "available": 0},
            )
        )
    lines.append(_render(entdados.RE, {"code": 1, "start_day": "I", "end_day": "F"}))
    lines.append(
        _render(
            entdados.LU,
            {"code": 1, "start_day": "I", "end_day": "F", "lower": 0.0, "upper": 4000.0},
        )
    )
    lines.append(
        _render(
            entdados.IA,
            {
                "from_code": SUBSYSTEMS[0][1],
                "to_code": SUBSYSTEMS[1][1],
                "capacity_from_to": 5000.0,
                "capacity_to_from": 4500.0,
            },
        )
    )
    for number, _, _ in SUBSYSTEMS:
        lines.append(
            _render(
                entdados.CD,
                {"subsystem": number, "curve": 1, "cost": 5_000.0, "upper_limit": 100.0},
            )
        )
    lines.append(
        _render(
            entdados.RI,
            {
                "start_day": "I",
                "end_day": "F",
                "gen_min_50": 0.0,
                "gen_max_50": 7000.0,
                "gen_min_60": 0.0,
                "gen_max_60": 7000.0,
                "ande_load": 1200.0,
            },
        )
    )
    lines.extend(_coefficient_lines())
    lines.extend(_study_setting_lines())
    return lines


def _coefficient_lines() -> List[str]:
    window = {"code": 1, "start_day": "I", "end_day": "F", "coefficient": 1.0}
    return [
        _render(entdados.FH, {**window, "plant": 1, "group": 1}),
        _render(entdados.FT, {**window, "plant": 1}),
        _render(
            entdados.FI,
            {**window, "from_code": SUBSYSTEMS[0][1], "to_code": SUBSYSTEMS[1][1]},
        ),
        _render(entdados.FE, {**window, "contract": 1}),
        _render(entdados.FR, {**window, "plant": 1}),
        _render(entdados.FC, {**window, "demand": 1}),
    ]


def _study_setting_lines() -> List[str]:
    lines = [
        _render(entdados.TX, {"rate": 12.0}),
        _render(entdados.EZ, {"plant": 1, "volume_pct": 100.0}),
        _render(
            entdados.R11,
            {
                "start_day": "I",
                "end_day": "F",
                "initial_level": 300.0,
                "max_hourly_variation": 0.5,
                "max_daily_variation": 2.0,
            },
        ),
        _render(
            entdados.FP,
            {
                "plant": 1,
                "volume_treatment": 2,
                "turbine_points": 5,
                "volume_points": 5,
                "check_concavity": 1,
                "least_squares": 1,
                "volume_window_pct": 20.0,
                "deviation_tolerance": 0.5,
            },
        ),
        _render(
            entdados.SECR,
            {"section": 1, "name": "JUSANTE-001", "upstream_1": 1, "share_1": 1.0},
        ),
        _render(
            entdados.CR,
            {"section": 1, "name": "JUSANTE-001", "degree": 1, "a0": 250.0, "a1": 0.01},
        ),
        _render(entdados.AC, {"plant": 1, "change": "NUMCON", "values": "   1"}),
        _render(entdados.AG, {"group_type": "RE", "group_id": 1, "description": "RESTRICOES"}),
        _render(entdados.VE, {"plant": 1, "start_day": "I", "end_day": "F", "volume": 90.0}),
    ]
    for kind, contract in ((entdados.CE, 1), (entdados.CI, 2)):
        lines.append(
            _render(
                kind,
                {
                    "contract": contract,
                    "name": f"CONTR-{contract:03d}",
                    "year": 2025,
                    "submarket": 1,
                    "start_day": "I",
                    "end_day": "F",
                    "modulation": 0,
                    "min_value": 0.0,
                    "max_value": 500.0,
                    "inflexibility": 0.0,
                    "priority": 1.0,
                    "availability": 1,
                    "cost": 100.0,
                },
            )
        )
    lines.extend(
        [
            _render(entdados.DE, {"demand": 1, "description": "CONSUMO ESPECIAL"}),
            _render(entdados.NI, {"option": "0"}),
            _render(entdados.RD, {"slack": 1, "max_circuits": 100, "load_by_bus": 0, "losses": 0}),
            _render(entdados.GP, {"gap_decomposition": 0.001, "gap_milp": 0.0001}),
        ]
    )
    return lines


def _hidr_binary(plants: int, cycle: bool, rng: random.Random) -> bytes:
    layout = hidr.binary_layout()
    chunks: List[bytes] = []
    for plant in range(1, plants + 1):
        minimum = float(rng.randint(50, 500))
        values: Dict[str, Any] = {
            "name": _hydro_name(plant),
            "posto": plant * 10,
            "subsystem": _subsystem_of(plant),
            "company": 1,
            "downstream": _downstream(plant, plants, cycle),
            "min_volume": minimum,
            "max_volume": minimum + rng.randint(500, 5_000),
            "volume_elevation_poly": (300.0, 0.5, 0.0, 0.0, 0.0),
            "evaporation": tuple(rng.randint(0, 10) for _ in range(12)),
            "unit_sets": 1,
            "machines_per_set": (UNITS_PER_PLANT, 0, 0, 0, 0),
            "nominal_power": (100.0, 0.0, 0.0, 0.0, 0.0),
            "productivity": 0.875,
            "reference_date": "01/01/1980",
            "regulation": "D",
        }
        chunks.append(layout.encode(values))
    return b"".join(chunks)


def _hidr_text_lines(plants: int, cycle: bool, rng: random.Random) -> List[str]:
    lines = ["& HIDR - text registry"]
    for plant in range(1, plants + 1):
        minimum = float(rng.randint(50, 500))
        lines.append(
            _render(
                hidr.CADUSIH,
                {
                    "plant": plant,
                    "name": _hydro_name(plant),
                    "subsystem": _subsystem_of(plant),
                    "commission_date": date(1980, 1, 1),
                    "downstream": _downstream(plant, plants, cycle),
                    "plant_type": 1,
                    "min_volume": minimum,
                    "max_volume": minimum + rng.randint(500, 5_000),
                    "max_turbine_flow": 1_000.0,
                    "capacity": 200.0,
                    "productivity": 0.875,
                },
            )
        )
        lines.append(
            _render(
                hidr.POLCOT,
                {"plant": plant, "degree": 2, "coef0": 300.0, "coef1": 0.5, "coef2": -1e-05},
            )
        )
    return lines


def _termdat_lines(thermal: int, rng: random.Random) -> List[str]:
    lines = ["& TERMDAT - thermal registry"]
    for plant in range(1, thermal + 1):
        lines.append(
            _render(
                termdat.CADUSIT,
                {
                    "plant": plant,
                    "name": _thermal_name(plant),
                    "subsystem": _subsystem_of(plant),
                    "commission_date": date(2000, 1, 1),
                    "plant_class": 1,
                    "fuel": 1,
                    "num_units": UNITS_PER_PLANT,
                },
            )
        )
        for unit in range(1, UNITS_PER_PLANT + 1):
            capacity = float(rng.randint(100, 400))
            lines.append(
                _render(
                    termdat.CADUNIDT,
                    {
                        "plant": plant,
                        "unit": unit,
                        "commission_date": date(2000, 1, 1),
                        "commission_hour": 0,
                        "unit_class": 1,
                        "capacity": capacity,
                        "min_generation": capacity / 4,
                        "min_on_time": 4,
                        "min_off_time": 4,
                    },
                )
            )
            lines.append(
                _render(
                    termdat.CURVACOMB,
                    {"plant": plant, "unit": unit, "heat_rate": 10_000, "generation": capacity},
                )
            )
    return lines


def _operuh_lines(plants: int) -> List[str]:
    lines = ["& OPERUH - hydro constraints"]
    prefix = "OPERUH "
    for constraint in range(1, min(plants, 2) + 1):
        lines.append(
            _render(
                operuh.REST,
                {"constraint_id": constraint, "type_flag": "L", "variable": "RHQ", "penalty": 15.0},
                prefix,
            )
        )
        lines.append(
            _render(
                operuh.ELEM,
                {
                    "constraint_id": constraint,
                    "plant": constraint,
                    "plant_name": _hydro_name(constraint),
                    "variable": 6,
                    "factor": 1.0,
                },
                prefix,
            )
        )
        lines.append(
            _render(
                operuh.LIM,
                {
                    "constraint_id": constraint,
                    "start_day": "I",
                    "end_day": "F",
                    "lower": 0.0,
                    "upper": 1_000.0,
                },
                prefix,
            )
        )
    lines.append(
        _render(
            operuh.VAR,
            {
                "constraint_id": 1,
                "start_day": "I",
                "end_day": "F",
                "lower_ramp": 10.0,
                "upper_ramp": 50.0,
            },
            prefix,
        )
    )
    return lines


def _operut_lines(thermal: int, rng: random.Random) -> List[str]:
    lines = ["& OPERUT - thermal operation", "INIT"]
    for plant in range(1, thermal + 1):
        for unit in range(1, UNITS_PER_PLANT + 1):
            lines.append(
                _render(
                    operut.INIT_ROW,
                    {
                        "plant": plant,
                        "plant_name": _thermal_name(plant),
                        "unit": unit,
                        "status": 1,
                        "initial_generation": float(rng.randint(50, 100)),
                        "hours_in_state": 10,
                        "mh_flag": 0,
                        "ad_flag": 0,
                        "t_flag": 0,
                        "inflexible_generation": 0.0,
                    },
                )
            )
    lines.extend(["FIM", "OPER"])
    for plant in range(1, thermal + 1):
        for unit in range(1, UNITS_PER_PLANT + 1):
            lines.append(
                _render(
                    operut.OPER_ROW,
                    {
                        "plant": plant,
                        "plant_name": _thermal_name(plant),
                        "unit": unit,
                        "start_day": "I",
                        "end_day": "F",
                        "min_generation": 10.0,
                        "max_generation": 100.0,
                        "cost": float(rng.randint(50, 400)),
                    },
                )
            )
    lines.append("FIM")
    return lines


def _areacont_lines(plants: int) -> List[str]:
    lines = ["AREA", _render(areacont.AREA_ROW, {"area": 1, "name": "AREA SE"}), "FIM", "USINA"]
    for plant in range(1, plants + 1):
        lines.append(
            _render(
                areacont.USINA_ROW,
                {"area": 1, "member_type": "H", "component": plant, "name": _hydro_name(plant)},
            )
        )
    lines.extend(["FIM", "9999"])
    return lines


def _rampas_lines(thermal: int) -> List[str]:
    lines = ["& RAMPAS - ramp trajectories", "RAMP"]
    for plant in range(1, thermal + 1):
        for unit in range(1, UNITS_PER_PLANT + 1):
            for step, power in enumerate((0.0, 50.0, 100.0)):
                lines.append(
                    _render(
                        rampas.RAMP_ROW,
                        {
                            "plant": plant,
                            "unit": unit,
                            "configuration": "S",
                            "ramp_type": "A",
                            "power": power,
                            "time": step,
                            "flag": 0,
                        },
                    )
                )
    lines.append("FIM")
    return lines


def _deflant_lines(plants: int) -> List[str]:
    lines = ["& DEFLANT - outflows before the study"]
    for plant in range(1, plants + 1):
        lines.append(
            _render(
                deflant.DEFANT,
                {
                    "upstream": plant,
                    "downstream": plant + 1 if plant < plants else None,
                    "element_type": "H",
                    "start_day": "I",
                    "end_day": "F",
                    "flow": 100.0 * plant,
                },
            )
        )
    return lines


def _ptoper_lines(thermal: int) -> List[str]:
    lines = ["& PTOPER - fixed operating points"]
    for plant in range(1, thermal + 1):
        lines.append(
            _render(
                ptoper.PTOPER,
                {
                    "element_type": "USIT",
                    "element": plant,
                    "variable": "GERA",
                    "start_day": "I",
                    "end_day": "F",
                    "value": 50.0,
                },
            )
        )
    return lines


def _respot_lines() -> List[str]:
    lines = [
        "& RESPOT - power reserve",
        _render(
            respot.RP,
            {"area": 1, "start_day": "I", "end_day": "F", "description": "RESERVA AREA SE"},
        ),
    ]
    for i in range(PERIODS):
        lines.append(
            _render(
                respot.LM,
                {
                    "area": 1,
                    "start_day": 1,
                    "start_hour": i // 2,
                    "start_half": i % 2,
                    "end_day": "F",
                    "lower": 1_000.0,
                },
            )
        )
    return lines


def _dadvaz_lines(plants: int) -> List[str]:
    lines = [
        "NUMERO DE USINAS",
        "XXX",
        str(plants),
        "NUMERO DAS USINAS NO CADASTRO",
        "XXX  " * plants,
        "  ".join(str(plant) for plant in range(1, plants + 1)),
        "Hr  Dd  Mm  Ano",
        "XX  XX  XX  XXXX",
        STUDY_START,
        "Dia inic(1-SAB...7-SEX); sem da FCF; n. semanas; pre-interesse",
        "X X X X",
        "4 1 1 0",
        "VAZOES DIARIAS PARA CADA USINA (m3/s)",
        "NUM     NOME      itp   DI HI M DF HF M      VAZAO",
    ]
    for plant in range(1, plants + 1):
        lines.append(
            _render(
                dadvaz.INFLOW_ROW,
                {
                    "plant": plant,
                    "name": _hydro_name(plant),
                    "inflow_type": 1,
                    "start_day": 1,
                    "end_day": "F",
                    "flow": 200.0 * plant,
                },
            )
        )
    lines.append("FIM")
    return lines


def _delimited(tag: str, *values: Any) -> str:
    return " ;".join([tag, *(str(v) for v in values)]) + " ;"


def _renovaveis_lines() -> List[str]:
    lines = ["& RENOVAVEIS - renewable plants"]
    for plant in range(1, RENEWABLE_PLANTS + 1):
        lines.extend(
            [
                _delimited(
                    renovaveis.EOLICA.discriminator, plant, f"EOL-{plant:03d}", 300.0, 1.0, 0
                ),
                _delimited(renovaveis.EOLICASUBM.discriminator, plant, SUBSYSTEMS[0][1]),
                _delimited(renovaveis.EOLICABARRA.discriminator, plant, 100 + plant),
            ]
        )
    for plant in range(1, RENEWABLE_PLANTS + 1):
        for i in range(PERIODS):
            lines.append(
                _delimited(
                    renovaveis.EOLICA_GERACAO.discriminator,
                    plant,
                    1,
                    i // 2,
                    i % 2,
                    1,
                    (i + 1) // 2,
                    (i + 1) % 2,
                    50.0,
                )
            )
    return lines


def _dessemarq_lines(names: List[str]) -> List[str]:
    kinds = {kind.name: kind for kind in dessemarq.KINDS}
    lines = ["&MNEMONICO DESCRICAO                               ARQUIVO"]
    lines.append(
        _render(kinds["CASO"], {"mnemonic": "CASO", "description": "EXTENSAO", "filename": "dat"})
    )
    for name in names:
        mnemonic = CASE_FILES[name]
        lines.append(
            _render(
                kinds[mnemonic],
                {"mnemonic": mnemonic, "description": f"ARQUIVO {mnemonic}", "filename": name},
            )
        )
    return lines


def _write_lines(path: Path, lines: List[str]) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")
    return path


def generate_case(
    output_dir: Path,
    plants: int = 5,
    thermal: int = 3,
    seed: int = 42,
    text_hidr: bool = False,
    cycle: bool = False,
) -> List[Path]:
    """
    Write a complete case into `output_dir` and return the files written.

    The plant registry is binary unless `text_hidr` is set; both encodings
    share the ``hidr.dat`` name. `cycle` closes the hydro cascade back onto
    the first plant. The ``dessem.arq`` index lists every file written,
    under the mnemonic DESSEM uses for it.
    """
    if plants < 1 or thermal < 1:
        raise ValueError("a case needs at least one hydro and one thermal plant")
    rng = random.Random(seed)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = [
        _write_lines(output_dir / "entdados.dat", _entdados_lines(plants, thermal, rng)),
        _write_lines(output_dir / "termdat.dat", _termdat_lines(thermal, rng)),
        _write_lines(output_dir / "operuh.dat", _operuh_lines(plants)),
        _write_lines(output_dir / "operut.dat", _operut_lines(thermal, rng)),
        _write_lines(output_dir / "areacont.dat", _areacont_lines(plants)),
        _write_lines(output_dir / "rampas.dat", _rampas_lines(thermal)),
        _write_lines(output_dir / "deflant.dat", _deflant_lines(plants)),
        _write_lines(output_dir / "ptoper.dat", _ptoper_lines(thermal)),
        _write_lines(output_dir / "respot.dat", _respot_lines()),
        _write_lines(output_dir / "dadvaz.dat", _dadvaz_lines(plants)),
        _write_lines(output_dir / "renovaveis.dat", _renovaveis_lines()),
    ]

    hidr_path = output_dir / "hidr.dat"
    if text_hidr:
        _write_lines(hidr_path, _hidr_text_lines(plants, cycle, rng))
    else:
        hidr_path.write_bytes(_hidr_binary(plants, cycle, rng))
    written.append(hidr_path)

    names = sorted(p.name for p in written)
    written.append(_write_lines(output_dir / "dessem.arq", _dessemarq_lines(names)))
    return written


@app.command()
def main(
    output: Path = typer.Option(
        Path("sample_case"),
        "--output",
        "-o",
        help="Directory receiving the case files.",
    ),
    plants: int = typer.Option(5, "--plants", help="Number of hydro plants."),
    thermal: int = typer.Option(3, "--thermal", help="Number of thermal plants."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    text_hidr: bool = typer.Option(
        False, "--text-hidr", help="Write the plant registry as text instead of binary."
    ),
    cycle: bool = typer.Option(
        False, "--cycle", help="Close the hydro cascade into a cycle."
    ),
) -> None:
    """
    Generate a synthetic DESSEM case directory.
    """
    typer.echo(f"Generating case -> {output} (plants={plants}, thermal={thermal}, seed={seed})")
    written = generate_case(
        output, plants=plants, thermal=thermal, seed=seed, text_hidr=text_hidr, cycle=cycle
    )
    for path in written:
        typer.echo(f"  {path.name} ({path.stat().st_size:,} bytes)")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
