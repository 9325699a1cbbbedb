from __future__ import annotations

import json
import multiprocessing as mp
from pathlib import Path
from typing import Any, ClassVar

import pytest

from dessem_ingest import orchestrator
from dessem_ingest.domain.builder import EntityCollection, ParseResult
from dessem_ingest.domain.diagnostics import DiagnosticCode
from dessem_ingest.domain.models import Subsystem
from dessem_ingest.orchestrator import FILE_FAILED, FILE_PARSED, FILE_SKIPPED, RunConfig, ingest_files
from dessem_ingest.registry import FormatRegistry

POOL_WORKERS = 2
TIMEOUT_SECONDS = 0.5


def _good_parser(file_id: str, content: bytes) -> ParseResult:
    entity = Subsystem(number=len(content), source_line=1)
    return ParseResult(EntityCollection(file_id, "GOOD", (entity,)), ())


def _failing_parser(file_id: str, content: bytes) -> ParseResult:
    del file_id, content
    raise RuntimeError("intentional failure")


def _fake_registry() -> FormatRegistry:
    registry = FormatRegistry()
    registry.register(r"good\d*\.dat", _good_parser, name="GOOD")
    registry.register(r"bad\.dat", _failing_parser, name="BAD")
    return registry.seal()


@pytest.fixture
def fake_registry(monkeypatch) -> FormatRegistry:
    registry = _fake_registry()
    monkeypatch.setattr(orchestrator, "_registry", lambda encoding, posto_range: registry)
    return registry


@pytest.fixture
def case_files(tmp_path: Path) -> list[Path]:
    paths = []
    for name, content in (("good1.dat", "ab"), ("notes.txt", "x"), ("bad.dat", "x")):
        path = tmp_path / name
        path.write_text(content)
        paths.append(path)
    return paths


class _FakeAsyncResult:
    def __init__(self, value: Any, timeout: bool = False) -> None:
        self._value = value
        self._timeout = timeout
        self.timeouts: list[float] = []

    def get(self, timeout: float) -> Any:
        self.timeouts.append(timeout)
        if self._timeout:
            raise mp.TimeoutError()
        return self._value


class _FakePool:
    instances: ClassVar[list[_FakePool]] = []
    hanging: ClassVar[set[str]] = set()

    def __init__(self, processes: int) -> None:
        self.processes = processes
        self.terminated = False
        self.joined = False
        self.results: list[_FakeAsyncResult] = []
        _FakePool.instances.append(self)

    def __enter__(self) -> _FakePool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb

    def apply_async(self, func, args) -> _FakeAsyncResult:
        (task,) = args
        hangs = task.file_id in self.hanging
        result = _FakeAsyncResult(None if hangs else func(task), timeout=hangs)
        self.results.append(result)
        return result

    def terminate(self) -> None:
        self.terminated = True

    def join(self) -> None:
        self.joined = True


class _FakeContext:
    def __init__(self, method: str) -> None:
        self.method = method

    def Pool(self, processes: int) -> _FakePool:  # noqa: N802 - mirrors multiprocessing API
        return _FakePool(processes)


@pytest.fixture
def fake_spawn(monkeypatch) -> list[str]:
    methods: list[str] = []

    def get_context(method: str) -> _FakeContext:
        methods.append(method)
        return _FakeContext(method)

    _FakePool.instances = []
    _FakePool.hanging = set()
    monkeypatch.setattr(orchestrator.mp, "get_context", get_context)
    return methods


def test_tolerant_policy_records_failure_and_continues(
    fake_registry, case_files, run_config
) -> None:
    report = ingest_files(case_files, run_config)

    assert [s.status for s in report.files] == [FILE_PARSED, FILE_SKIPPED, FILE_FAILED]
    assert report.failed_files == ("bad.dat",)
    assert report.skipped_files == ("notes.txt",)
    assert report.has_errors is True

    failure = report.files[2]
    assert failure.error == "intentional failure"
    assert failure.format == "BAD"
    (diagnostic,) = report.errors
    assert diagnostic.code is DiagnosticCode.READ_FAILURE
    assert diagnostic.file_id == "bad.dat"
    assert diagnostic.message == "RuntimeError: intentional failure"


def test_strict_policy_fails_fast(fake_registry, case_files) -> None:
    config = RunConfig(workers=1, persist=False, failure_policy="strict")

    with pytest.raises(RuntimeError, match="intentional failure"):
        ingest_files(case_files, config)


def test_unregistered_files_can_be_reported(fake_registry, case_files) -> None:
    config = RunConfig(workers=1, persist=False, report_unregistered=True)

    report = ingest_files(case_files[:2], config)

    assert report.skipped_files == ("notes.txt",)
    (diagnostic,) = report.diagnostics
    assert diagnostic.code is DiagnosticCode.NO_PARSER_REGISTERED
    assert diagnostic.file_id == "notes.txt"
    assert report.has_errors is True


def test_profile_is_attached_to_parsed_files(fake_registry, case_files, run_config) -> None:
    report = ingest_files(case_files[:1], run_config)

    (summary,) = report.files
    assert summary.profile["label"] == "good1.dat"
    assert summary.profile["duration_seconds"] >= 0
    assert (summary.profile["bytes_read"], summary.profile["entities"]) == (2, 1)


def test_pool_uses_local_spawn_context(fake_registry, fake_spawn, tmp_path) -> None:
    paths = []
    for index in range(3):
        path = tmp_path / f"good{index}.dat"
        path.write_text("x" * (index + 1))
        paths.append(path)
    config = RunConfig(workers=POOL_WORKERS, persist=False, task_timeout_seconds=TIMEOUT_SECONDS)

    report = ingest_files(paths, config)

    assert fake_spawn == ["spawn"]
    (pool,) = _FakePool.instances
    assert pool.processes == POOL_WORKERS
    timeouts = [t for result in pool.results for t in result.timeouts]
    assert len(timeouts) == 3
    assert all(0 <= t <= TIMEOUT_SECONDS for t in timeouts)
    # Outcomes come back in file order.
    assert [c.entities[0].number for c in report.collections] == [1, 2, 3]


def test_single_task_does_not_start_a_pool(fake_registry, fake_spawn, case_files) -> None:
    config = RunConfig(workers=POOL_WORKERS, persist=False)

    ingest_files(case_files[:2], config)

    assert fake_spawn == []


def test_pool_timeout_keeps_finished_files(fake_registry, fake_spawn, tmp_path) -> None:
    paths = [tmp_path / "good1.dat", tmp_path / "good2.dat"]
    for path in paths:
        path.write_text("x")
    _FakePool.hanging = {"good2.dat"}
    config = RunConfig(workers=POOL_WORKERS, persist=False, task_timeout_seconds=TIMEOUT_SECONDS)

    report = ingest_files(paths, config)

    assert [s.status for s in report.files] == [FILE_PARSED, FILE_FAILED]
    assert [c.file_id for c in report.collections] == ["good1.dat"]
    assert report.failed_files == ("good2.dat",)
    (diagnostic,) = report.errors
    assert diagnostic.code is DiagnosticCode.READ_FAILURE
    assert diagnostic.expected == "parse finished within the task timeout"
    assert report.files[1].format == "GOOD"
    (pool,) = _FakePool.instances
    assert pool.terminated is True
    assert pool.joined is True


def test_pool_timeout_is_raised_under_strict_policy(fake_registry, fake_spawn, tmp_path) -> None:
    paths = [tmp_path / "good1.dat", tmp_path / "good2.dat"]
    for path in paths:
        path.write_text("x")
    _FakePool.hanging = {"good1.dat", "good2.dat"}
    config = RunConfig(
        workers=POOL_WORKERS,
        persist=False,
        task_timeout_seconds=TIMEOUT_SECONDS,
        failure_policy="strict",
    )

    with pytest.raises(mp.TimeoutError, match="good1.dat, good2.dat"):
        ingest_files(paths, config)

    (pool,) = _FakePool.instances
    assert pool.terminated is True


def test_persist_writes_latest_and_archive(fake_registry, case_files, tmp_path) -> None:
    results_dir = tmp_path / "results"
    config = RunConfig(workers=1, persist=True, results_dir=results_dir)

    ingest_files(case_files, config)

    latest = json.loads((results_dir / "latest.json").read_text(encoding="utf-8"))
    assert latest["failed_files"] == ["bad.dat"]
    assert latest["entities"] == {"good1.dat": {"SIST": 1}}
    assert len(list(results_dir.glob("run-*.json"))) == 1
