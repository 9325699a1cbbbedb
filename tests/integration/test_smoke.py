"""
Integration tests for DESSEM case ingestion.

These tests generate complete case directories and verify that:
1. Every registered format parses without diagnostics
2. Serial and pooled runs produce the same collections
3. Cross-reference validation finds an injected cascade cycle
4. The CLI exit code reflects the error diagnostics of the run
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from dessem_ingest.domain.diagnostics import DiagnosticCode
from dessem_ingest.main import app
from dessem_ingest.orchestrator import RunConfig, ingest_directory


SAMPLE_PLANTS = 5
SAMPLE_THERMAL = 3
UNITS_PER_PLANT = 2
RAMP_POINTS = 3
RENEWABLE_PLANTS = 2
POOL_WORKERS = 2

EXPECTED_SUMMARIES = {
    "areacont.dat": {"AREA": 1, "USINA": SAMPLE_PLANTS},
    "entdados.dat": {
        "TM": 4,
        "SIST": 2,
        "REE": 2,
        "UH": SAMPLE_PLANTS,
        "TVIAG": 1,
        "UT": SAMPLE_THERMAL,
        "DP": 8,
        "DA": 1,
        "MT": 1,
        "RE": 1,
        "LU": 1,
        "IA": 1,
        "CD": 2,
        "RI": 1,
        **{
            tag: 1
            for tag in (
                "FH", "FT", "FI", "FE", "FR", "FC", "TX", "EZ", "R11", "FP", "SECR",
                "CR", "AC", "AG", "VE", "CE", "CI", "DE", "NI", "RD", "GP",
            )
        },  # fmt: skip
    },
    "dadvaz.dat": {"VAZHDR": 1, "VAZAO": SAMPLE_PLANTS},
    "deflant.dat": {"DEFANT": SAMPLE_PLANTS},
    "dessem.arq": {"ARQ": 13},
    "hidr.dat": {"HIDR": SAMPLE_PLANTS},
    "operuh.dat": {"REST": 2},
    "operut.dat": {
        "INIT": SAMPLE_THERMAL * UNITS_PER_PLANT,
        "OPER": SAMPLE_THERMAL * UNITS_PER_PLANT,
    },
    "ptoper.dat": {"PTOPER": SAMPLE_THERMAL},
    "rampas.dat": {"RAMP": SAMPLE_THERMAL * UNITS_PER_PLANT * RAMP_POINTS},
    "renovaveis.dat": {
        "EOLICA": RENEWABLE_PLANTS,
        "EOLICASUBM": RENEWABLE_PLANTS,
        "EOLICABARRA": RENEWABLE_PLANTS,
        "EOLICA-GERACAO": RENEWABLE_PLANTS * 4,
    },
    "respot.dat": {"RP": 1},
    "termdat.dat": {
        "CADUSIT": SAMPLE_THERMAL,
        "CADUNIDT": SAMPLE_THERMAL * UNITS_PER_PLANT,
        "CURVACOMB": SAMPLE_THERMAL * UNITS_PER_PLANT,
    },
}


def _summaries(report) -> dict:
    return {c.file_id: c.summary() for c in report.collections}


class TestSampleCase:
    """A consistent generated case ingests cleanly."""

    def test_serial_run_parses_every_registered_file(self, sample_case, run_config):
        report = ingest_directory(sample_case, run_config)

        assert report.failed_files == ()
        assert report.skipped_files == ()
        assert list(report.diagnostics) == []
        assert report.has_errors is False
        assert _summaries(report) == EXPECTED_SUMMARIES

    def test_binary_registry_records_are_indexed(self, sample_case, run_config):
        report = ingest_directory(sample_case, run_config)

        plants = report.collection("hidr.dat").entities
        assert [p.index for p in plants] == list(range(1, SAMPLE_PLANTS + 1))
        assert plants[0].name == "UHE-001"
        assert plants[0].downstream == 2
        assert plants[-1].downstream is None
        assert plants[0].posto == 10

    def test_constraints_carry_their_sub_records(self, sample_case, run_config):
        report = ingest_directory(sample_case, run_config)

        first, second = report.collection("operuh.dat").entities
        assert (first.constraint_id, second.constraint_id) == (1, 2)
        assert [e.plant for e in first.elements] == [1]
        assert [(limit.lower, limit.upper) for limit in first.limits] == [(0.0, 1000.0)]
        assert [(r.lower_ramp, r.upper_ramp) for r in first.ramps] == [(10.0, 50.0)]
        assert second.ramps == ()

    def test_pooled_run_matches_serial_run(self, sample_case, run_config):
        serial = ingest_directory(sample_case, run_config)
        pooled = ingest_directory(
            sample_case, RunConfig(workers=POOL_WORKERS, persist=False)
        )

        assert _summaries(pooled) == _summaries(serial)
        assert [s.file_id for s in pooled.files] == [s.file_id for s in serial.files]
        assert pooled.diagnostics == serial.diagnostics

    def test_text_registry_is_detected(self, text_hidr_case, run_config):
        report = ingest_directory(text_hidr_case, run_config)

        assert list(report.diagnostics) == []
        assert report.collection("hidr.dat").summary() == {
            "CADUSIH": SAMPLE_PLANTS,
            "POLCOT": SAMPLE_PLANTS,
        }


class TestValidation:
    """Cross-file validation runs on the merged collections."""

    def test_cascade_cycle_is_reported_once(self, cyclic_case, run_config):
        report = ingest_directory(cyclic_case, run_config)

        assert report.failed_files == ()
        assert [d.code for d in report.errors] == [DiagnosticCode.CYCLE_DETECTED]
        (cycle,) = report.errors
        assert cycle.file_id == "hidr.dat"
        assert cycle.excerpt == "1 -> 2 -> 3 -> 4 -> 5 -> 1"

    def test_validation_can_be_disabled(self, cyclic_case):
        report = ingest_directory(cyclic_case, RunConfig(persist=False, validate=False))

        assert report.errors == []


class TestCli:
    """CLI commands through the typer test runner."""

    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    def test_formats_lists_registered_formats(self, runner):
        result = runner.invoke(app, ["formats"])

        assert result.exit_code == 0
        assert "ENTDADOS" in result.output
        assert "HIDR" in result.output

    def test_ingest_clean_case_exits_zero(self, runner, sample_case):
        result = runner.invoke(app, ["ingest", str(sample_case), "--no-persist"])

        assert result.exit_code == 0, result.output
        assert "entdados.dat" in result.output

    def test_ingest_with_cycle_exits_one(self, runner, cyclic_case):
        result = runner.invoke(app, ["ingest", str(cyclic_case), "--no-persist"])

        assert result.exit_code == 1

    def test_ingest_persists_json_report(self, runner, sample_case, tmp_path):
        results_dir = tmp_path / "results"

        result = runner.invoke(
            app,
            ["ingest", str(sample_case), "--persist"],
            env={"INGEST_RESULTS_DIR": str(results_dir)},
        )

        assert result.exit_code == 0, result.output
        latest = json.loads((results_dir / "latest.json").read_text(encoding="utf-8"))
        assert latest["skipped_files"] == []
        assert latest["entities"]["hidr.dat"] == {"HIDR": SAMPLE_PLANTS}
