"""
Pytest configuration for DESSEM ingestion.

Provides fixtures for:
- Generated sample case directories (binary and text plant registry)
- Settings isolated from the developer environment
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dessem_ingest.config import Settings, get_settings
from dessem_ingest.orchestrator import RunConfig

SAMPLE_PLANTS = 5
SAMPLE_THERMAL = 3
SAMPLE_SEED = 42

_SETTINGS_ENV = (
    "LOG_LEVEL",
    "LOG_JSON",
    "INGEST_WORKERS",
    "INGEST_ENCODING",
    "INGEST_RESULTS_DIR",
    "INGEST_FAILURE_POLICY",
    "INGEST_READ_RETRIES",
    "INGEST_TASK_TIMEOUT",
    "HIDR_POSTO_MIN",
    "HIDR_POSTO_MAX",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Run every test without ingestion variables from the caller's shell and
    outside any `.env` file, with a fresh settings cache.
    """
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(_env_file=None, LOG_LEVEL="DEBUG")


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    """Serial, non-persisting run options."""
    return RunConfig(workers=1, persist=False, results_dir=tmp_path / "results")


def _generate(root: Path, **options) -> Path:
    from scripts.generate_sample_case import generate_case

    generate_case(root, plants=SAMPLE_PLANTS, thermal=SAMPLE_THERMAL, seed=SAMPLE_SEED, **options)
    return root


@pytest.fixture
def sample_case(tmp_path: Path) -> Path:
    """
    Complete case directory with a binary plant registry and consistent
    cross references.
    """
    return _generate(tmp_path / "case")


@pytest.fixture
def text_hidr_case(tmp_path: Path) -> Path:
    """Same case with the plant registry written as text."""
    return _generate(tmp_path / "case_text", text_hidr=True)


@pytest.fixture
def cyclic_case(tmp_path: Path) -> Path:
    """Case whose hydro cascade loops back onto the first plant."""
    return _generate(tmp_path / "case_cycle", cycle=True)
