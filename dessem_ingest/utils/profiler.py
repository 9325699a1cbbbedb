"""
Per-file ingestion metrics.

`profile_parse` wraps the read and parse of one DESSEM file and fills a
`ParseProfile` with:
- how much was read and what came out of it (bytes, entities, unparsed
  lines, warnings and errors), reported by the caller through `record`;
- wall-clock time, from which entity and byte throughput are derived;
- the peak resident set size of the worker, sampled by psutil in a
  background thread, and the peak Python allocation seen by tracemalloc.

Usage:
    from dessem_ingest.utils.profiler import profile_parse

    with profile_parse("entdados.dat") as profile:
        content = path.read_bytes()
        result = registry.dispatch("entdados.dat", content)
        profile.record(len(content), result)

    print(profile.entities_per_second, profile.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
import tracemalloc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Generator, Optional

import psutil

if TYPE_CHECKING:
    from dessem_ingest.domain.builder import ParseResult


@dataclass
class ParseProfile:
    """Measurements of one file parse; the label is the file identifier."""

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    bytes_read: int = 0
    entities: int = 0
    unparsed: int = 0
    warnings: int = 0
    errors: int = 0
    peak_rss_bytes: Optional[int] = field(default=None)
    peak_traced_bytes: Optional[int] = field(default=None)

    def record(self, bytes_read: int, result: "ParseResult") -> None:
        """Count what one parse pass produced from `bytes_read` bytes of input."""
        self.bytes_read = bytes_read
        self.entities = len(result.collection)
        self.unparsed = len(result.collection.unparsed)
        self.errors = sum(1 for d in result.diagnostics if d.is_error)
        self.warnings = len(result.diagnostics) - self.errors

    @property
    def entities_per_second(self) -> Optional[float]:
        if self.duration_seconds <= 0:
            return None
        return self.entities / self.duration_seconds

    @property
    def megabytes_per_second(self) -> Optional[float]:
        if self.duration_seconds <= 0:
            return None
        return self.bytes_read / 1_000_000 / self.duration_seconds

    def as_dict(self) -> Dict[str, Any]:
        """Rounded view stored in the run report next to each file summary."""
        rate = self.entities_per_second
        throughput = self.megabytes_per_second
        return {
            "label": self.label,
            "duration_seconds": round(self.duration_seconds, 4),
            "bytes_read": self.bytes_read,
            "entities": self.entities,
            "unparsed": self.unparsed,
            "warnings": self.warnings,
            "errors": self.errors,
            "entities_per_second": round(rate, 1) if rate is not None else None,
            "megabytes_per_second": round(throughput, 3) if throughput is not None else None,
            "peak_rss_bytes": self.peak_rss_bytes,
            "peak_traced_bytes": self.peak_traced_bytes,
        }


@contextlib.contextmanager
def profile_parse(
    file_id: str, sample_interval_ms: int = 50, enable_tracemalloc: bool = True
) -> Generator[ParseProfile, None, None]:
    """
    Measure the parse of one file.

    Parameters
    ----------
    file_id : str
        File identifier used as the profile label.
    sample_interval_ms : int
        RSS sampling period of the background thread.
    enable_tracemalloc : bool
        Track the peak of Python allocations while parsing. Tracing that was
        already running is left running.
    """
    profile = ParseProfile(label=file_id)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    tracing_before = tracemalloc.is_tracing()
    if enable_tracemalloc and not tracing_before:
        tracemalloc.start()

    sampler = threading.Thread(target=_sample_memory, name=f"rss-{file_id}", daemon=True)
    sampler.start()

    profile.start_ts = time.perf_counter()
    try:
        yield profile
    finally:
        profile.end_ts = time.perf_counter()
        profile.duration_seconds = profile.end_ts - profile.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)
        profile.peak_rss_bytes = peak_rss if peak_rss > 0 else None

        if enable_tracemalloc and tracemalloc.is_tracing():
            _, peak_traced = tracemalloc.get_traced_memory()
            profile.peak_traced_bytes = peak_traced
            if not tracing_before:
                tracemalloc.stop()


__all__ = ["ParseProfile", "profile_parse"]
