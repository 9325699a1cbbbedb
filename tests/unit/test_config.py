from __future__ import annotations

import pytest
from pydantic import ValidationError

from dessem_ingest.config import Settings, get_settings
from dessem_ingest.orchestrator import RunConfig

EXPECTED_WORKERS = 4
EXPECTED_POSTO_RANGE = (10, 500)


def test_defaults(test_settings: Settings) -> None:
    assert test_settings.workers == 1
    assert test_settings.encoding == "latin-1"
    assert test_settings.failure_policy == "tolerant"
    assert test_settings.posto_range == (1, 9999)
    assert test_settings.log_level == "DEBUG"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("INGEST_WORKERS", str(EXPECTED_WORKERS))
    monkeypatch.setenv("INGEST_FAILURE_POLICY", "strict")
    monkeypatch.setenv("HIDR_POSTO_MIN", "10")
    monkeypatch.setenv("HIDR_POSTO_MAX", "500")

    settings = get_settings()

    assert settings.workers == EXPECTED_WORKERS
    assert settings.failure_policy == "strict"
    assert settings.posto_range == EXPECTED_POSTO_RANGE
    assert get_settings() is settings


def test_env_file_is_read(tmp_path) -> None:
    env_file = tmp_path / "custom.env"
    env_file.write_text("INGEST_ENCODING=cp1252\nLOG_JSON=true\n", encoding="utf-8")

    settings = Settings(_env_file=env_file)

    assert settings.encoding == "cp1252"
    assert settings.log_json is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"HIDR_POSTO_MIN": 10, "HIDR_POSTO_MAX": 5},
        {"INGEST_WORKERS": 0},
        {"INGEST_FAILURE_POLICY": "lenient"},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_run_config_from_settings_ignores_unset_overrides(test_settings: Settings) -> None:
    config = RunConfig.from_settings(test_settings, workers=None, failure_policy="strict")

    assert config.workers == test_settings.workers
    assert config.failure_policy == "strict"
    assert config.posto_range == test_settings.posto_range
    assert config.task_timeout_seconds == test_settings.task_timeout_seconds
