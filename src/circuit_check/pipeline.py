"""End-to-end check: load circuits, score difficulty, verify against the reference."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from .circuits import load_catalog, read_program
from .config import CheckConfig
from .dependency_graph import DependencyGraph, build_dependency_graph
from .difficulty import DifficultyReport, score_difficulty
from .exceptions import CyclicDependencyError
from .models import ClassificationResult, Instruction, RunResult
from .reporter import render_report
from .runner import VerificationRunner
from .verifiers.base import BaseVerifier
from .verifiers.specgen_verifier import SpecgenVerifier


@dataclass
class AnalysisResult:
    circuit_dir: Path
    catalog: Dict[Instruction, FrozenSet[Instruction]]
    graph: DependencyGraph
    difficulty: Optional[DifficultyReport] = None
    cycle_error: Optional[str] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class CheckResult:
    analysis: AnalysisResult
    run: RunResult

    def render(self) -> str:
        return render_report(self.analysis.difficulty, self.run, self.analysis.cycle_error)


class CheckPipeline:
    def __init__(self, config: Optional[CheckConfig] = None, verifier: Optional[BaseVerifier] = None):
        self.config = config or CheckConfig()
        self.verifier = verifier

    def analyze(self, circuit_dir: Path) -> AnalysisResult:
        """Load the catalog, build the graph and score it.

        A cyclic catalog is reported on the result instead of raising, so the
        verification run can still go ahead.
        """
        catalog = load_catalog(circuit_dir, self.config.circuit_extension)
        graph = build_dependency_graph(catalog)
        result = AnalysisResult(circuit_dir=circuit_dir, catalog=catalog, graph=graph)
        try:
            result.difficulty = score_difficulty(graph)
        except CyclicDependencyError as exc:
            result.cycle_error = str(exc)
        return result

    def check(
        self,
        circuit_dir: Path,
        subjects: Optional[Iterable[Instruction]] = None,
        verbose: bool = False,
        on_result: Optional[Callable[[ClassificationResult], None]] = None,
        analysis: Optional[AnalysisResult] = None,
    ) -> CheckResult:
        if analysis is None:
            analysis = self.analyze(circuit_dir)
        verifier = self.verifier or SpecgenVerifier(self.config.resolved_verifier_command(), circuit_dir)
        extension = self.config.circuit_extension
        runner = VerificationRunner(
            verifier,
            deny_list=self.config.deny_list,
            timeout_seconds=self.config.timeout_seconds,
            jobs=self.config.jobs,
            program_loader=lambda instruction: read_program(circuit_dir, instruction, extension),
            on_result=on_result,
        )
        run = runner.run(analysis.graph, subjects=subjects, verbose=verbose)
        return CheckResult(analysis=analysis, run=run)


def build_report_payload(result: CheckResult) -> dict:
    analysis = result.analysis
    difficulty = analysis.difficulty
    payload: dict = {
        "run_id": analysis.run_id,
        "time": datetime.now().isoformat(),
        "circuit_dir": str(analysis.circuit_dir),
        "instruction_count": len(analysis.graph),
        "edge_count": len(analysis.graph.edges),
        "cycle_error": analysis.cycle_error,
    }
    if difficulty is not None:
        payload["difficulty"] = {
            "max_score": difficulty.max_score,
            "chain": [str(instruction) for instruction in difficulty.chain],
            "distribution": difficulty.distribution.to_dict(),
        }
    payload["results"] = [
        {
            "instruction": str(entry.instruction),
            "outcome": entry.outcome.value,
            "score": difficulty.score(entry.instruction) if difficulty is not None else None,
            "verifier_invoked": entry.verifier_invoked,
            "elapsed_seconds": round(entry.elapsed_seconds, 3),
        }
        for entry in result.run.results
    ]
    payload["tally"] = result.run.tally.to_dict()
    return payload
