"""Plain-text rendering of difficulty and verification results."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .difficulty import DifficultyReport, ScoreDistribution
from .models import ClassificationResult, RunResult, RunTally, VerificationOutcome

# order in which the tally is listed, matching the summary people are used to
TALLY_ORDER = (
    VerificationOutcome.CORRECT,
    VerificationOutcome.KNOWN_REFERENCE_BUG,
    VerificationOutcome.NOT_EQUIVALENT,
    VerificationOutcome.TIMEOUT,
    VerificationOutcome.UNSUPPORTED_BY_REFERENCE,
    VerificationOutcome.UNEXPECTED_ERROR,
)
_LABEL_WIDTH = max(len(outcome.label) for outcome in TALLY_ORDER) + 2


def render_chain(difficulty: DifficultyReport) -> List[str]:
    chain = difficulty.chain
    if not chain:
        return ["Maximum path length is 0 (no circuits to analyze).", "Path:"]
    lines = [
        f"Maximum path length is {difficulty.max_score} "
        f"(i.e. there is an instruction that required learning {difficulty.max_score} instructions first).",
        "Path:",
    ]
    lines.extend(f"  {instruction}" for instruction in chain)
    return lines


def render_distribution(distribution: ScoreDistribution, title: str = "path lengths for all instructions") -> List[str]:
    lines = [
        f"Distribution of {title}:",
        f"  count:  {distribution.count}",
        f"  min:    {distribution.minimum}",
        f"  max:    {distribution.maximum}",
        f"  mean:   {distribution.mean:.2f}",
        f"  median: {distribution.median:.1f}",
    ]
    for score, count in sorted(distribution.histogram.items()):
        lines.append(f"  {score:>4}: {count}")
    return lines


def render_tally(tally: RunTally) -> List[str]:
    counts = tally.counts
    lines = [f"{'Total:':<{_LABEL_WIDTH}}{tally.total}"]
    for outcome in TALLY_ORDER:
        lines.append(f"{outcome.label + ':':<{_LABEL_WIDTH}}{counts[outcome]}")
    return lines


def render_failures(results: Iterable[ClassificationResult]) -> List[str]:
    """Diagnostics for circuits the verifier could not prove equivalent."""
    lines: List[str] = []
    for result in results:
        if result.outcome is not VerificationOutcome.NOT_EQUIVALENT:
            continue
        if result.program is None:
            lines.append(f"{result.instruction}: not equivalent")
            continue
        lines.extend([
            "",
            "-------------------------------------",
            "",
            f"Opcode '{result.instruction}' not equivalent:",
            "",
            "Program:",
            "  " + result.program.rstrip("\n").replace("\n", "\n  "),
            "",
            result.output.strip(),
        ])
    return lines


def render_report(
    difficulty: Optional[DifficultyReport],
    run_result: Optional[RunResult] = None,
    cycle_error: Optional[str] = None,
) -> str:
    lines: List[str] = []
    if difficulty is not None:
        lines.extend(render_chain(difficulty))
        lines.append("")
        lines.extend(render_distribution(difficulty.distribution))
    elif cycle_error:
        lines.append(f"Difficulty analysis skipped: {cycle_error}")
    if run_result is not None:
        failures = render_failures(run_result.results)
        if failures:
            lines.append("")
            lines.extend(failures)
        lines.append("")
        lines.extend(render_tally(run_result.tally))
    return "\n".join(lines)
