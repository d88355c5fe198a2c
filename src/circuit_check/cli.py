"""Typer-based CLI to check learned circuits against the reference verifier."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from .commands.check import CheckHandler
from .commands.graph import DifficultyHandler, GraphHandler
from .config import DEFAULT_CIRCUIT_EXTENSION, DEFAULT_CONFIG_NAME

app = typer.Typer(help="circuit-check CLI - verify learned instruction circuits and rank their difficulty")


@app.command()
def check(
    circuits: Path = typer.Option(..., "--circuits", "-c", exists=True, file_okay=False, dir_okay=True, help="Directory of learned circuits (<opcode>.s)"),
    config: str = typer.Option(DEFAULT_CONFIG_NAME, "--config", help="Config file name under config/ or an absolute path"),
    config_tag: str = typer.Option("default", "--config-tag", help="Tag selecting an entry in a multi-config file"),
    specgen: Optional[Path] = typer.Option(None, "--specgen", help="Path to the specgen executable (overrides config)"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Per-instruction timeout in seconds (default 15)"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Number of verifier processes to run at once"),
    opcodes: Optional[List[str]] = typer.Option(None, "--opcode", help="Only check these opcodes (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print program and verifier output for non-equivalent circuits"),
    failures_output: Optional[Path] = typer.Option(None, "--failures-output", help="Write non-equivalent circuits and verifier output to a YAML file"),
    save_report: bool = typer.Option(True, "--save-report/--no-save-report", help="Persist a JSON report and log under the results directory"),
    results_dir: Optional[Path] = typer.Option(None, "--results-dir", help="Where to persist reports (overrides config)"),
) -> None:
    """Check every learned circuit against the reference implementation."""
    CheckHandler().run(
        circuits=circuits,
        config_name=config,
        config_tag=config_tag,
        specgen=specgen,
        timeout=timeout,
        jobs=jobs,
        opcodes=opcodes,
        verbose=verbose,
        failures_output=failures_output,
        save_report=save_report,
        results_dir=results_dir,
    )


@app.command()
def difficulty(
    circuits: Path = typer.Option(..., "--circuits", "-c", exists=True, file_okay=False, dir_okay=True, help="Directory of learned circuits"),
    extension: str = typer.Option(DEFAULT_CIRCUIT_EXTENSION, "--extension", help="Circuit file extension"),
) -> None:
    """Show the longest dependency chain and the difficulty distribution."""
    DifficultyHandler().run(circuits, extension)


@app.command()
def graph(
    circuits: Path = typer.Option(..., "--circuits", "-c", exists=True, file_okay=False, dir_okay=True, help="Directory of learned circuits"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="YAML output file (prints to stdout if omitted)"),
    extension: str = typer.Option(DEFAULT_CIRCUIT_EXTENSION, "--extension", help="Circuit file extension"),
) -> None:
    """Dump the circuit dependency graph as YAML."""
    GraphHandler().run(circuits, output, extension)


if __name__ == "__main__":
    app()
