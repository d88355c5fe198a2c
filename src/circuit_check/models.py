"""Domain models used throughout the pipeline."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional


@dataclass(frozen=True, order=True)
class Instruction:
    """An x86-64 opcode variant such as ``vandpd_ymm_ymm_ymm``."""

    opcode: str

    def __str__(self) -> str:
        return self.opcode


@dataclass(frozen=True)
class Circuit:
    """A learned circuit and the instructions its program uses."""

    instruction: Instruction
    references: FrozenSet[Instruction]
    path: Optional[Path] = None


@dataclass(frozen=True)
class DifficultyRecord:
    score: int
    predecessor: Optional[Instruction] = None


class VerificationOutcome(Enum):
    """Closed set of results for checking one circuit against the reference."""

    CORRECT = "correct"
    KNOWN_REFERENCE_BUG = "known_reference_bug"
    NOT_EQUIVALENT = "not_equivalent"
    TIMEOUT = "timeout"
    UNSUPPORTED_BY_REFERENCE = "unsupported_by_reference"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def label(self) -> str:
        return _OUTCOME_LABELS[self]


_OUTCOME_LABELS = {
    VerificationOutcome.CORRECT: "Reference == circuit",
    VerificationOutcome.KNOWN_REFERENCE_BUG: "Reference is wrong",
    VerificationOutcome.NOT_EQUIVALENT: "Reference != circuit",
    VerificationOutcome.TIMEOUT: "Timeout",
    VerificationOutcome.UNSUPPORTED_BY_REFERENCE: "Unsupported by reference",
    VerificationOutcome.UNEXPECTED_ERROR: "Unexpected error",
}


@dataclass(frozen=True)
class VerifierRun:
    """Termination status and captured output of one verifier invocation."""

    returncode: Optional[int]
    output: str = ""
    timed_out: bool = False
    elapsed_seconds: float = 0.0


@dataclass
class ClassificationResult:
    instruction: Instruction
    outcome: VerificationOutcome
    output: str = ""
    # Diagnostics are only attached for non-equivalent circuits in verbose mode
    program: Optional[str] = None
    elapsed_seconds: float = 0.0
    verifier_invoked: bool = True


class RunTally:
    """Per-outcome counts plus a running total.

    ``record`` is safe to call from several worker threads at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[VerificationOutcome, int] = {outcome: 0 for outcome in VerificationOutcome}
        self._total = 0

    def record(self, outcome: VerificationOutcome) -> None:
        with self._lock:
            self._counts[outcome] += 1
            self._total += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def counts(self) -> Dict[VerificationOutcome, int]:
        with self._lock:
            return dict(self._counts)

    def count(self, outcome: VerificationOutcome) -> int:
        with self._lock:
            return self._counts[outcome]

    def reconciles(self) -> bool:
        with self._lock:
            return sum(self._counts.values()) == self._total

    def to_dict(self) -> Dict[str, int]:
        data = {outcome.value: count for outcome, count in self.counts.items()}
        data["total"] = self.total
        return data


@dataclass
class RunResult:
    results: List[ClassificationResult] = field(default_factory=list)
    tally: RunTally = field(default_factory=RunTally)

    def by_outcome(self, outcome: VerificationOutcome) -> List[ClassificationResult]:
        return [result for result in self.results if result.outcome is outcome]
