from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from dessem_ingest.domain.diagnostics import Diagnostic, Severity
from dessem_ingest.orchestrator import FILE_FAILED, FILE_PARSED, FILE_SKIPPED, FileSummary, IngestReport

_STATUS_STYLE = {
    FILE_PARSED: "green",
    FILE_FAILED: "bold red",
    FILE_SKIPPED: "dim",
}


def _format_bytes(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def _format_rate(value: Optional[float]) -> str:
    return f"{value:,.0f}" if value is not None else "-"


def files_table(files: Iterable[FileSummary]) -> Table:
    """Per-file summary, in file order."""
    table = Table(title="DESSEM Ingestion", box=box.ROUNDED)

    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Format", style="blue")
    table.add_column("Status")
    table.add_column("Entities", justify="right", style="magenta")
    table.add_column("Unparsed", justify="right")
    table.add_column("Warnings", justify="right", style="yellow")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Entities/s", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")

    for summary in files:
        style = _STATUS_STYLE.get(summary.status, "")
        duration = summary.profile.get("duration_seconds")
        table.add_row(
            summary.file_id,
            summary.format or "-",
            f"[{style}]{summary.status}[/{style}]" if style else summary.status,
            f"{summary.entities:,}",
            str(summary.unparsed),
            str(summary.warnings),
            str(summary.errors),
            f"{duration:.3f}" if duration is not None else "-",
            _format_rate(summary.profile.get("entities_per_second")),
            _format_bytes(summary.profile.get("peak_rss_bytes")),
        )
    return table


def diagnostics_table(diagnostics: Iterable[Diagnostic], limit: int = 50) -> Table:
    """
    Diagnostics listing, errors first.

    Only the first `limit` rows are rendered; the caption counts the rest.
    """
    ordered: List[Diagnostic] = sorted(diagnostics, key=lambda d: not d.is_error)
    table = Table(title="Diagnostics", box=box.ROUNDED)
    if len(ordered) > limit:
        table.caption = f"{len(ordered) - limit} more not shown"

    table.add_column("Severity", no_wrap=True)
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Location", style="blue")
    table.add_column("Message")

    for diagnostic in ordered[:limit]:
        severity = (
            "[bold red]error[/bold red]"
            if diagnostic.severity is Severity.ERROR
            else "[yellow]warning[/yellow]"
        )
        table.add_row(severity, diagnostic.code.value, diagnostic.location(), diagnostic.message)
    return table


def print_report(report: IngestReport, console: Optional[Console] = None, limit: int = 50) -> None:
    """
    Render a run report as rich tables.

    Prints the per-file summary, a count per diagnostic code and the
    diagnostics themselves.
    """
    console = console or Console()

    if not report.files:
        console.print("[yellow]No files to display.[/yellow]")
        return

    console.print(files_table(report.files))

    if report.diagnostics:
        counts = Counter(d.code.value for d in report.diagnostics)
        summary = ", ".join(f"{code}={count}" for code, count in sorted(counts.items()))
        console.print(f"[dim]Diagnostics by code: {summary}[/dim]")
        console.print(diagnostics_table(report.diagnostics, limit=limit))
    else:
        console.print("[green]No diagnostics.[/green]")

    if report.failed_files:
        console.print(f"[bold red]Failed files:[/bold red] {', '.join(report.failed_files)}")


__all__ = ["diagnostics_table", "files_table", "print_report"]
