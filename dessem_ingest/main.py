from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from dessem_ingest.config import get_settings
from dessem_ingest.orchestrator import RunConfig, ingest_directory
from dessem_ingest.registry import build_default_registry
from dessem_ingest.reporter import print_report
from dessem_ingest.utils.logging import configure_logging

app = typer.Typer(help="DESSEM input file ingestion CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"workers={settings.workers} encoding={settings.encoding} "
        f"failure_policy={settings.failure_policy} results_dir={settings.results_dir} | "
        f"hidr posto range={settings.hidr_posto_min}..{settings.hidr_posto_max} "
        f"read_retries={settings.read_retries}"
    )


@app.command()
def formats() -> None:
    """
    List the registered file formats and the file names they claim.
    """
    settings = get_settings()
    registry = build_default_registry(settings.encoding, settings.posto_range)
    for name, pattern, description in registry.describe():
        typer.echo(f"{name:<10} {pattern:<28} {description}")


@app.command()
def ingest(
    case_dir: Path = typer.Argument(..., help="Directory holding the case input files."),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Parse processes (default from settings; 1 parses serially).",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Abort on the first fatal file error instead of recording it.",
    ),
    report_unregistered: bool = typer.Option(
        False,
        "--report-unregistered",
        help="Report files no format claims as errors instead of skipping them.",
    ),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Write the JSON report."),
    entities: bool = typer.Option(
        False, "--entities", help="Include every parsed entity in the JSON report."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Parse every recognised file of a case directory, validate cross references
    and print the report.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    config = RunConfig.from_settings(
        settings,
        workers=workers,
        failure_policy="strict" if strict else None,
        report_unregistered=report_unregistered,
        persist=persist,
        include_entities=entities,
    )
    typer.echo(
        f"Ingesting '{case_dir}' (workers={config.workers}, policy={config.failure_policy})."
    )
    report = ingest_directory(case_dir, config)

    if as_json:
        typer.echo(json.dumps(report.to_payload(include_entities=entities), indent=2))
    else:
        print_report(report)

    if report.has_errors:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
