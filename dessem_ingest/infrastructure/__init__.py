"""
Infrastructure package for DESSEM ingestion.

Centralizes file-system concerns (case discovery, retried reads). Keep this
layer focused on I/O, decoupled from grammar and orchestrator logic.
"""

from dessem_ingest.infrastructure.file_source import discover_files, read_content

__all__ = ["discover_files", "read_content"]
