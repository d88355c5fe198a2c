"""Learning difficulty of circuits.

The difficulty score of an instruction is the length of the longest chain of
learned circuits that had to exist before it could be learned: circuits
that only use base instructions score 0, everything else scores one more
than its hardest dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from .dependency_graph import DependencyGraph
from .models import DifficultyRecord, Instruction


@dataclass(frozen=True)
class ScoreDistribution:
    count: int = 0
    minimum: int = 0
    maximum: int = 0
    mean: float = 0.0
    median: float = 0.0
    histogram: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_scores(cls, scores: Iterable[int]) -> "ScoreDistribution":
        values = np.asarray(list(scores), dtype=np.int64)
        if values.size == 0:
            return cls()
        unique, counts = np.unique(values, return_counts=True)
        return cls(
            count=int(values.size),
            minimum=int(values.min()),
            maximum=int(values.max()),
            mean=float(values.mean()),
            median=float(np.median(values)),
            histogram={int(score): int(n) for score, n in zip(unique, counts)},
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "count": self.count,
            "min": self.minimum,
            "max": self.maximum,
            "mean": self.mean,
            "median": self.median,
            "histogram": {str(score): n for score, n in self.histogram.items()},
        }


@dataclass(frozen=True)
class DifficultyReport:
    order: Tuple[Instruction, ...]
    records: Mapping[Instruction, DifficultyRecord]
    hardest: Optional[Instruction]
    distribution: ScoreDistribution

    @property
    def max_score(self) -> int:
        if self.hardest is None:
            return 0
        return self.records[self.hardest].score

    @property
    def chain(self) -> List[Instruction]:
        if self.hardest is None:
            return []
        return hardest_chain(self.records, self.hardest)

    def score(self, instruction: Instruction) -> int:
        return self.records[instruction].score


def score_difficulty(graph: DependencyGraph) -> DifficultyReport:
    """Score every node of an acyclic graph.

    Raises CyclicDependencyError (from the topological sort) before any
    score is computed when the graph has a cycle.
    """
    order = graph.topological_order()
    records: Dict[Instruction, DifficultyRecord] = {}
    hardest: Optional[Instruction] = None

    for instruction in order:
        predecessors = graph.predecessors(instruction)
        if not predecessors:
            # instructions that we can learn directly get a score of 0
            record = DifficultyRecord(score=0)
        else:
            # predecessors are sorted, so max() keeps the smallest opcode on a tie
            best = max(predecessors, key=lambda pred: records[pred].score)
            record = DifficultyRecord(score=records[best].score + 1, predecessor=best)
        records[instruction] = record
        if hardest is None or record.score > records[hardest].score:
            hardest = instruction

    return DifficultyReport(
        order=tuple(order),
        records=records,
        hardest=hardest,
        distribution=ScoreDistribution.from_scores(record.score for record in records.values()),
    )


def hardest_chain(records: Mapping[Instruction, DifficultyRecord], end: Instruction) -> List[Instruction]:
    """Follow recorded predecessors from ``end`` back to a score-0 instruction.

    Returns the chain ordered from the score-0 instruction to ``end``. Every
    step lowers the score by exactly one, so the chain has ``score + 1`` entries.
    """
    chain = [end]
    current = end
    for _ in range(records[end].score):
        predecessor = records[current].predecessor
        if predecessor is None:
            raise ValueError(f"{current} has score {records[current].score} but no predecessor")
        chain.append(predecessor)
        current = predecessor
    chain.reverse()
    return chain
