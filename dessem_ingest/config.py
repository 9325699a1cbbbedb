"""
Configuration settings for DESSEM ingestion.

Uses Pydantic Settings to load environment variables (or a `.env` file) for
logging, worker fan-out, text encoding, failure policy and the binary
registry detection range.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Tuple

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Ingestion
    workers: int = Field(1, alias="INGEST_WORKERS", ge=1)
    encoding: str = Field("latin-1", alias="INGEST_ENCODING")
    results_dir: str = Field("results", alias="INGEST_RESULTS_DIR")
    failure_policy: Literal["tolerant", "strict"] = Field("tolerant", alias="INGEST_FAILURE_POLICY")
    read_retries: int = Field(3, alias="INGEST_READ_RETRIES", ge=1)
    task_timeout_seconds: float = Field(600.0, alias="INGEST_TASK_TIMEOUT", gt=0)

    # Binary HIDR detection
    hidr_posto_min: int = Field(1, alias="HIDR_POSTO_MIN")
    hidr_posto_max: int = Field(9999, alias="HIDR_POSTO_MAX")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_posto_range(self) -> "Settings":
        if self.hidr_posto_min > self.hidr_posto_max:
            raise ValueError("HIDR_POSTO_MIN must not exceed HIDR_POSTO_MAX")
        return self

    @property
    def posto_range(self) -> Tuple[int, int]:
        return (self.hidr_posto_min, self.hidr_posto_max)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
