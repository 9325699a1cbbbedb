"""
Cross-cutting helpers for ingestion runs: logging setup and per-file parse
metrics. Nothing here knows about DESSEM record layouts.
"""

from dessem_ingest.utils.logging import configure_logging, get_logger
from dessem_ingest.utils.profiler import ParseProfile, profile_parse

__all__ = [
    "configure_logging",
    "get_logger",
    "ParseProfile",
    "profile_parse",
]
