"""Handlers for the 'difficulty' and 'graph' commands."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..circuits import load_catalog
from ..config import DEFAULT_CIRCUIT_EXTENSION
from ..dependency_graph import build_dependency_graph
from ..difficulty import score_difficulty
from ..exceptions import CircuitParseError, CyclicDependencyError
from ..reporter import render_chain, render_distribution
from ..utils import dump_yaml

console = Console()


def _load_graph(circuits: Path, extension: str):
    try:
        return build_dependency_graph(load_catalog(circuits, extension))
    except CircuitParseError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)


class DifficultyHandler:
    def run(self, circuits: Path, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> None:
        graph = _load_graph(circuits, extension)
        try:
            difficulty = score_difficulty(graph)
        except CyclicDependencyError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(code=1)

        console.print(f"[bold]{len(graph)} circuits, {len(graph.edges)} dependencies.[/bold]")
        lines = render_chain(difficulty) + [""] + render_distribution(difficulty.distribution)
        console.print("\n".join(lines), markup=False, highlight=False)


class GraphHandler:
    def run(self, circuits: Path, output: Optional[Path], extension: str = DEFAULT_CIRCUIT_EXTENSION) -> None:
        graph = _load_graph(circuits, extension)
        data = {"circuit_dir": str(circuits), **graph.to_dict()}
        text = dump_yaml(data, output)
        if output:
            console.print(f"Saved to {output}")
        else:
            console.print(text, markup=False, highlight=False)
