"""
Orchestrator for ingesting a DESSEM case: per-file parsing, merge, validation
and report persistence.

Usage (example from CLI):
    from dessem_ingest.orchestrator import RunConfig, ingest_directory

    report = ingest_directory("cases/rv2", RunConfig(workers=4, persist=False))
    print(report.failed_files, len(report.diagnostics))

Every file is parsed by an independent task (serially, or on a spawn-context
process pool). Results are merged only once every task has finished, and the
cross-reference validator runs on the merged, frozen collections.

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
import multiprocessing as mp
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, NamedTuple, Optional, Sequence, Tuple

from dessem_ingest.config import Settings, get_settings
from dessem_ingest.domain.builder import EntityCollection
from dessem_ingest.domain.diagnostics import Diagnostic, DiagnosticCode, Severity
from dessem_ingest.errors import IngestError, NoParserRegistered
from dessem_ingest.formats.hidr import DEFAULT_POSTO_RANGE
from dessem_ingest.infrastructure.file_source import discover_files, read_content
from dessem_ingest.registry import FormatRegistry, build_default_registry
from dessem_ingest.utils.logging import get_logger
from dessem_ingest.utils.profiler import profile_parse
from dessem_ingest.validation import validate

log = get_logger(__name__)

FailurePolicy = Literal["tolerant", "strict"]

FILE_PARSED = "parsed"
FILE_FAILED = "failed"
FILE_SKIPPED = "skipped"


@dataclass(frozen=True)
class RunConfig:
    """
    Options of one ingestion run.

    Attributes
    ----------
    workers : int
        Parse tasks run in parallel; 1 parses serially in this process.
    failure_policy : "tolerant" | "strict"
        Tolerant runs record a fatal file error and continue with the other
        files; strict runs re-raise the first one.
    report_unregistered : bool
        Emit a NoParserRegistered error for files no format claims, instead
        of skipping them silently.
    """

    workers: int = 1
    encoding: str = "latin-1"
    posto_range: Tuple[int, int] = DEFAULT_POSTO_RANGE
    failure_policy: FailurePolicy = "tolerant"
    report_unregistered: bool = False
    validate: bool = True
    persist: bool = True
    results_dir: Path | str = "results"
    include_entities: bool = False
    read_retries: int = 3
    task_timeout_seconds: float = 600.0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "RunConfig":
        settings = settings or get_settings()
        values: Dict[str, Any] = {
            "workers": settings.workers,
            "encoding": settings.encoding,
            "posto_range": settings.posto_range,
            "failure_policy": settings.failure_policy,
            "results_dir": settings.results_dir,
            "read_retries": settings.read_retries,
            "task_timeout_seconds": settings.task_timeout_seconds,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass(frozen=True)
class FileTask:
    """Picklable unit of work shipped to a parse worker."""

    path: str
    file_id: str
    encoding: str = "latin-1"
    posto_range: Tuple[int, int] = DEFAULT_POSTO_RANGE
    read_retries: int = 3
    strict: bool = False


@dataclass(frozen=True)
class FileOutcome:
    """Result of one parse task, successful or not."""

    file_id: str
    status: str
    format: Optional[str] = None
    collection: Optional[EntityCollection] = None
    diagnostics: Tuple[Diagnostic, ...] = ()
    error: Optional[str] = None
    error_type: Optional[str] = None
    profile: Dict[str, Any] = field(default_factory=dict)


class FileSummary(NamedTuple):
    file_id: str
    format: Optional[str]
    status: str
    entities: int
    unparsed: int
    warnings: int
    errors: int
    error: Optional[str]
    profile: Dict[str, Any]


@dataclass(frozen=True)
class IngestReport:
    """
    Immutable aggregate of one run.

    `collections` holds every successfully parsed file; `diagnostics` the
    parse findings of every file followed by the validation findings.
    """

    collections: Tuple[EntityCollection, ...]
    diagnostics: Tuple[Diagnostic, ...]
    failed_files: Tuple[str, ...]
    skipped_files: Tuple[str, ...]
    files: Tuple[FileSummary, ...] = ()
    timestamp: str = ""

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def has_errors(self) -> bool:
        return bool(self.failed_files) or any(d.is_error for d in self.diagnostics)

    def collection(self, file_id: str) -> Optional[EntityCollection]:
        for collection in self.collections:
            if collection.file_id == file_id:
                return collection
        return None

    def to_payload(self, include_entities: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "files": [summary._asdict() for summary in self.files],
            "failed_files": list(self.failed_files),
            "skipped_files": list(self.skipped_files),
            "entities": {c.file_id: c.summary() for c in self.collections},
            "diagnostics": [d.model_dump(mode="json") for d in self.diagnostics],
        }
        if include_entities:
            payload["collections"] = {
                c.file_id: [e.model_dump(mode="json") | {"tag": e.tag} for e in c]
                for c in self.collections
            }
        return payload


@lru_cache(maxsize=4)
def _registry(encoding: str, posto_range: Tuple[int, int]) -> FormatRegistry:
    """Per-process registry, built once per distinct configuration."""
    return build_default_registry(encoding=encoding, posto_range=posto_range)


def _failure_diagnostic(file_id: str, exc: Exception) -> Diagnostic:
    if isinstance(exc, IngestError):
        return exc.to_diagnostic(file_id)
    return Diagnostic(
        file_id=file_id,
        severity=Severity.ERROR,
        code=DiagnosticCode.READ_FAILURE,
        message=f"{type(exc).__name__}: {exc}",
    )


def _parse_file(task: FileTask) -> FileOutcome:
    """
    Worker function: read and parse one file.

    Module-level so spawn-context workers can import it.
    """
    registry = _registry(task.encoding, task.posto_range)
    entry = registry.lookup(task.file_id)
    if entry is None:
        raise NoParserRegistered(f"no parser registered for {task.file_id!r}", file_id=task.file_id)

    log.info(f"[FILE START] {task.file_id}", extra={"file_id": task.file_id, "format": entry.name})
    with profile_parse(task.file_id) as profile:
        try:
            content = read_content(task.path, attempts=task.read_retries)
            result = entry.parse(task.file_id, content)
            profile.record(len(content), result)
            outcome = FileOutcome(
                file_id=task.file_id,
                status=FILE_PARSED,
                format=result.collection.format,
                collection=result.collection,
                diagnostics=result.diagnostics,
            )
            log.info(
                f"[FILE SUCCESS] {task.file_id}",
                extra={
                    "file_id": task.file_id,
                    "entities": len(result.collection),
                    "diagnostics": len(result.diagnostics),
                },
            )
        except Exception as exc:  # noqa: BLE001 - intentional broad catch to record failures
            log.exception(f"[FILE FAILED] {task.file_id}", extra={"file_id": task.file_id})
            if task.strict:
                raise
            outcome = FileOutcome(
                file_id=task.file_id,
                status=FILE_FAILED,
                format=entry.name,
                diagnostics=(_failure_diagnostic(task.file_id, exc),),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    return replace(outcome, profile=profile.as_dict())


def _timeout_outcome(task: FileTask, timeout: float) -> FileOutcome:
    entry = _registry(task.encoding, task.posto_range).lookup(task.file_id)
    message = f"parse did not finish within {timeout:g} seconds"
    diagnostic = Diagnostic(
        file_id=task.file_id,
        severity=Severity.ERROR,
        code=DiagnosticCode.READ_FAILURE,
        message=message,
        expected="parse finished within the task timeout",
    )
    return FileOutcome(
        file_id=task.file_id,
        status=FILE_FAILED,
        format=entry.name if entry is not None else None,
        diagnostics=(diagnostic,),
        error=message,
        error_type="TimeoutError",
    )


def _run_tasks(tasks: Sequence[FileTask], config: RunConfig) -> List[FileOutcome]:
    """
    Run parse tasks serially or on a spawn-context pool, preserving task order.

    On the pool every task shares one deadline. Files still running when it
    passes are recorded as failed and the pool is terminated; files that had
    already finished keep their results.
    """
    if not tasks:
        return []
    processes = min(config.workers, len(tasks))
    if processes <= 1:
        return [_parse_file(task) for task in tasks]

    log.info(
        f"[POOL] Parsing {len(tasks)} files on {processes} processes",
        extra={"files": len(tasks), "processes": processes},
    )
    timeout = config.task_timeout_seconds
    outcomes: List[FileOutcome] = []
    timed_out: List[str] = []
    # Local spawn context: never touches the global start method.
    ctx = mp.get_context("spawn")
    with ctx.Pool(processes) as pool:
        pending = [pool.apply_async(_parse_file, (task,)) for task in tasks]
        deadline = time.monotonic() + timeout
        for task, async_result in zip(tasks, pending):
            try:
                outcomes.append(async_result.get(max(0.0, deadline - time.monotonic())))
            except mp.TimeoutError:
                timed_out.append(task.file_id)
                outcomes.append(_timeout_outcome(task, timeout))

        if timed_out:
            log.error(
                "[POOL] Parse tasks timed out",
                extra={"files": timed_out, "timeout_seconds": timeout},
            )
            pool.terminate()
            pool.join()
            if config.failure_policy == "strict":
                raise mp.TimeoutError(f"{', '.join(timed_out)} did not finish within {timeout:g}s")
    return outcomes


def _skipped_outcome(file_id: str, config: RunConfig) -> FileOutcome:
    diagnostics: Tuple[Diagnostic, ...] = ()
    if config.report_unregistered:
        diagnostics = (
            NoParserRegistered(
                f"no parser registered for {file_id!r}", file_id=file_id
            ).to_diagnostic(),
        )
    log.debug(f"[FILE SKIPPED] {file_id}", extra={"file_id": file_id})
    return FileOutcome(file_id=file_id, status=FILE_SKIPPED, diagnostics=diagnostics)


def _summarize(outcome: FileOutcome) -> FileSummary:
    collection = outcome.collection
    return FileSummary(
        file_id=outcome.file_id,
        format=outcome.format,
        status=outcome.status,
        entities=len(collection) if collection is not None else 0,
        unparsed=len(collection.unparsed) if collection is not None else 0,
        warnings=sum(1 for d in outcome.diagnostics if d.severity is Severity.WARNING),
        errors=sum(1 for d in outcome.diagnostics if d.severity is Severity.ERROR),
        error=outcome.error,
        profile=outcome.profile,
    )


def _merge_outcomes(
    outcomes: Sequence[FileOutcome],
    validation: Iterable[Diagnostic] = (),
    timestamp: Optional[str] = None,
) -> IngestReport:
    """Fold per-file outcomes (in file order) and validation findings into one report."""
    diagnostics: List[Diagnostic] = []
    for outcome in outcomes:
        diagnostics.extend(outcome.diagnostics)
    diagnostics.extend(validation)
    return IngestReport(
        collections=tuple(o.collection for o in outcomes if o.collection is not None),
        diagnostics=tuple(diagnostics),
        failed_files=tuple(o.file_id for o in outcomes if o.status == FILE_FAILED),
        skipped_files=tuple(o.file_id for o in outcomes if o.status == FILE_SKIPPED),
        files=tuple(_summarize(o) for o in outcomes),
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
    )


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    with latest_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    with archive_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def ingest_files(paths: Iterable[Path | str], config: Optional[RunConfig] = None) -> IngestReport:
    """
    Parse the given files, validate them together and build the run report.

    Parameters
    ----------
    paths : iterable[Path | str]
        Files of one case. The base name of each path is its file identifier.
    config : RunConfig | None
        Run options. Defaults to `RunConfig.from_settings()`.

    Returns
    -------
    IngestReport
        Parsed collections, every diagnostic, and the failed and skipped files.

    Raises
    ------
    Exception
        Under the strict failure policy, the first fatal file error.
    """
    config = config or RunConfig.from_settings()
    registry = _registry(config.encoding, tuple(config.posto_range))

    slots: List[Optional[FileOutcome]] = []
    tasks: List[FileTask] = []
    for raw_path in paths:
        path = Path(raw_path)
        file_id = path.name
        if registry.lookup(file_id) is None:
            slots.append(_skipped_outcome(file_id, config))
            continue
        slots.append(None)
        tasks.append(
            FileTask(
                path=str(path),
                file_id=file_id,
                encoding=config.encoding,
                posto_range=tuple(config.posto_range),
                read_retries=config.read_retries,
                strict=config.failure_policy == "strict",
            )
        )

    log.info(
        "[INGEST START]",
        extra={"files": len(slots), "tasks": len(tasks), "workers": config.workers},
    )
    parsed = iter(_run_tasks(tasks, config))
    outcomes = [slot if slot is not None else next(parsed) for slot in slots]

    validation: List[Diagnostic] = []
    if config.validate:
        collections = [o.collection for o in outcomes if o.collection is not None]
        validation = validate(collections)

    report = _merge_outcomes(outcomes, validation)
    if config.persist:
        _persist_results(
            report.to_payload(include_entities=config.include_entities), Path(config.results_dir)
        )

    log.info(
        "[INGEST COMPLETE]",
        extra={
            "parsed": len(report.collections),
            "failed": len(report.failed_files),
            "skipped": len(report.skipped_files),
            "diagnostics": len(report.diagnostics),
        },
    )
    return report


def ingest_directory(
    root: Path | str, config: Optional[RunConfig] = None, pattern: str = "*"
) -> IngestReport:
    """Discover the files of a case directory and ingest them."""
    return ingest_files(discover_files(root, pattern), config)


__all__ = [
    "FileOutcome",
    "FileSummary",
    "FileTask",
    "IngestReport",
    "RunConfig",
    "ingest_directory",
    "ingest_files",
]
