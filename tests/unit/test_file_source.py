from __future__ import annotations

import pytest
from tenacity import wait_none

from dessem_ingest.infrastructure import file_source
from dessem_ingest.infrastructure.file_source import discover_files, read_content

EXPECTED_ATTEMPTS = 3


def test_discover_files_lists_regular_files_sorted(tmp_path) -> None:
    (tmp_path / "termdat.dat").write_text("x")
    (tmp_path / "entdados.dat").write_text("x")
    (tmp_path / "nested").mkdir()

    assert [p.name for p in discover_files(tmp_path)] == ["entdados.dat", "termdat.dat"]
    assert [p.name for p in discover_files(tmp_path, "term*")] == ["termdat.dat"]


def test_discover_files_requires_directory(tmp_path) -> None:
    with pytest.raises(NotADirectoryError):
        discover_files(tmp_path / "missing")


def test_read_content_returns_bytes(tmp_path) -> None:
    path = tmp_path / "hidr.dat"
    path.write_bytes(b"\x00\x01")

    assert read_content(path) == b"\x00\x01"


def test_read_content_retries_transient_errors(monkeypatch, tmp_path) -> None:
    calls: list[int] = []

    def flaky(path):
        calls.append(1)
        if len(calls) < EXPECTED_ATTEMPTS:
            raise OSError("resource temporarily unavailable")
        return b"ok"

    monkeypatch.setattr(file_source, "_read_bytes", flaky)

    assert read_content(tmp_path / "x", attempts=EXPECTED_ATTEMPTS, wait=wait_none()) == b"ok"
    assert len(calls) == EXPECTED_ATTEMPTS


def test_read_content_reraises_after_last_attempt(monkeypatch, tmp_path) -> None:
    calls: list[int] = []

    def always_failing(path):
        calls.append(1)
        raise OSError("stale file handle")

    monkeypatch.setattr(file_source, "_read_bytes", always_failing)

    with pytest.raises(OSError, match="stale"):
        read_content(tmp_path / "x", attempts=2, wait=wait_none())
    assert len(calls) == 2


def test_missing_file_is_not_retried(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_content(tmp_path / "missing.dat", attempts=5, wait=wait_none())
