"""Handler for the 'check' command."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from ..config import load_check_config
from ..exceptions import CircuitParseError, ConfigError, VerifierUnavailableError, VerifierUnexpectedStatusError
from ..models import ClassificationResult, Instruction, VerificationOutcome
from ..pipeline import CheckPipeline, build_report_payload
from ..report_manager import ReportManager
from ..reporter import TALLY_ORDER
from ..utils import dump_yaml

console = Console()

_OUTCOME_STYLES = {
    VerificationOutcome.CORRECT: "green",
    VerificationOutcome.KNOWN_REFERENCE_BUG: "magenta",
    VerificationOutcome.NOT_EQUIVALENT: "red",
    VerificationOutcome.TIMEOUT: "yellow",
    VerificationOutcome.UNSUPPORTED_BY_REFERENCE: "cyan",
    VerificationOutcome.UNEXPECTED_ERROR: "bold red",
}


class CheckHandler:
    def run(self,
            circuits: Path,
            config_name: str,
            config_tag: str,
            specgen: Optional[Path],
            timeout: Optional[float],
            jobs: Optional[int],
            opcodes: Optional[List[str]],
            verbose: bool,
            failures_output: Optional[Path],
            save_report: bool,
            results_dir: Optional[Path]) -> None:

        try:
            config = load_check_config(config_name, config_tag)
        except (ConfigError, FileNotFoundError) as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(code=1)

        overrides = {}
        if specgen:
            # relative to the caller's cwd, unlike paths in the config file
            overrides["verifier_command"] = (str(specgen.resolve()),)
        if timeout is not None:
            overrides["timeout_seconds"] = timeout
        if jobs is not None:
            overrides["jobs"] = jobs
        if results_dir is not None:
            overrides["results_dir"] = results_dir
        config = replace(config, **overrides)

        pipeline = CheckPipeline(config)
        try:
            analysis = pipeline.analyze(circuits)
        except CircuitParseError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(code=1)

        if analysis.cycle_error:
            console.print(f"[yellow]Warning: {analysis.cycle_error}; skipping difficulty analysis.[/yellow]")

        subjects = [Instruction(opcode) for opcode in opcodes] if opcodes else None
        if subjects:
            missing = [str(subject) for subject in subjects if subject not in analysis.graph]
            if missing:
                console.print(f"[yellow]No circuit for: {', '.join(missing)}[/yellow]")
        total = len(analysis.graph.restrict(subjects)) if subjects else len(analysis.graph)
        console.print(f"[bold]Checking {total} circuits from {circuits}.[/bold]")

        # failure dumps need the program text, same as verbose output
        capture = verbose or failures_output is not None

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Verifying...", total=total)

            def on_result(result: ClassificationResult) -> None:
                if result.outcome is VerificationOutcome.TIMEOUT:
                    progress.console.print(f"{result.instruction}: timeout")
                elif result.outcome is VerificationOutcome.NOT_EQUIVALENT and not verbose:
                    progress.console.print(f"{result.instruction}: not equivalent")
                progress.update(task, description=f"Verified {result.instruction}")
                progress.advance(task)

            try:
                result = pipeline.check(
                    circuits,
                    subjects=subjects,
                    verbose=capture,
                    on_result=on_result,
                    analysis=analysis,
                )
            except VerifierUnavailableError as exc:
                console.print(f"[bold red]Error:[/bold red] {exc}")
                raise typer.Exit(code=1)
            except VerifierUnexpectedStatusError as exc:
                console.print(f"[bold red]Unexpected error: {exc.returncode}[/bold red]")
                console.print(exc.output)
                raise typer.Exit(code=2)

        console.print()
        console.print(result.render(), markup=False, highlight=False)

        table = Table(title="Verification Summary")
        table.add_column("Outcome")
        table.add_column("Count", justify="right")
        counts = result.run.tally.counts
        for outcome in TALLY_ORDER:
            style = _OUTCOME_STYLES[outcome]
            table.add_row(f"[{style}]{outcome.label}[/{style}]", str(counts[outcome]))
        table.add_row("[bold]Total[/bold]", str(result.run.tally.total))
        console.print(table)

        if failures_output:
            failures = [
                {"instruction": str(entry.instruction), "program": entry.program or "", "output": entry.output}
                for entry in result.run.by_outcome(VerificationOutcome.NOT_EQUIVALENT)
            ]
            dump_yaml({"circuit_dir": str(circuits), "not_equivalent": failures}, failures_output)
            console.print(f"Failure details saved to [blue]{failures_output}[/blue]")

        if save_report:
            manager = ReportManager(config.results_dir)
            payload = build_report_payload(result)
            report_path = manager.persist_report(payload)
            log_path = manager.persist_log(payload, result.render(), report_path.stem)
            console.print(f"Report saved at: {report_path}")
            console.print(f"Log saved at: {log_path}")
