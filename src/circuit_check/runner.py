"""Classifying every learned circuit against the reference verifier."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Optional

from .config import DEFAULT_TIMEOUT_SECONDS
from .dependency_graph import DependencyGraph
from .exceptions import CyclicDependencyError, VerifierUnexpectedStatusError
from .models import ClassificationResult, Instruction, RunResult, RunTally, VerificationOutcome, VerifierRun
from .verifiers.base import BaseVerifier
from .verifiers.specgen_verifier import EXIT_EQUIVALENT, EXIT_NOT_EQUIVALENT, EXIT_TIMEOUT, EXIT_UNSUPPORTED


def classify_run(run: VerifierRun) -> VerificationOutcome:
    """Map a verifier termination status onto an outcome."""
    if run.timed_out or run.returncode == EXIT_TIMEOUT:
        return VerificationOutcome.TIMEOUT
    if run.returncode == EXIT_UNSUPPORTED:
        return VerificationOutcome.UNSUPPORTED_BY_REFERENCE
    if run.returncode == EXIT_NOT_EQUIVALENT:
        return VerificationOutcome.NOT_EQUIVALENT
    if run.returncode == EXIT_EQUIVALENT:
        return VerificationOutcome.CORRECT
    return VerificationOutcome.UNEXPECTED_ERROR


class VerificationRunner:
    """Checks each circuit once and tallies the outcomes.

    Instructions on the deny-list have a known-wrong reference
    implementation; they are counted without calling the verifier.
    """

    def __init__(
        self,
        verifier: BaseVerifier,
        deny_list: Iterable[str] = (),
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        jobs: int = 1,
        program_loader: Optional[Callable[[Instruction], str]] = None,
        on_result: Optional[Callable[[ClassificationResult], None]] = None,
    ):
        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self.verifier = verifier
        self.deny_list = frozenset(str(opcode) for opcode in deny_list)
        self.timeout_seconds = timeout_seconds
        self.jobs = jobs
        self.program_loader = program_loader
        self.on_result = on_result

    def run(
        self,
        graph: DependencyGraph,
        subjects: Optional[Iterable[Instruction]] = None,
        verbose: bool = False,
    ) -> RunResult:
        view = graph.restrict(subjects) if subjects is not None else graph
        try:
            order = view.topological_order()
        except CyclicDependencyError:
            # classification does not depend on the order; the scorer reports the cycle
            order = view.nodes

        self.verifier.reset()
        tally = RunTally()
        if self.jobs == 1 or len(order) <= 1:
            results = [self._classify_and_record(instruction, tally, verbose) for instruction in order]
        else:
            results = self._run_parallel(order, tally, verbose)
        return RunResult(results=results, tally=tally)

    def classify(self, instruction: Instruction, verbose: bool = False) -> ClassificationResult:
        if instruction.opcode in self.deny_list:
            return ClassificationResult(
                instruction=instruction,
                outcome=VerificationOutcome.KNOWN_REFERENCE_BUG,
                verifier_invoked=False,
            )

        run = self.verifier.invoke(instruction, self.timeout_seconds)
        outcome = classify_run(run)
        if outcome is VerificationOutcome.UNEXPECTED_ERROR:
            raise VerifierUnexpectedStatusError(instruction, run.returncode, run.output)

        result = ClassificationResult(
            instruction=instruction,
            outcome=outcome,
            output=run.output,
            elapsed_seconds=run.elapsed_seconds,
        )
        if outcome is VerificationOutcome.NOT_EQUIVALENT and verbose and self.program_loader:
            result.program = self.program_loader(instruction)
        return result

    def _classify_and_record(self, instruction: Instruction, tally: RunTally, verbose: bool) -> ClassificationResult:
        result = self.classify(instruction, verbose)
        tally.record(result.outcome)
        if self.on_result:
            self.on_result(result)
        return result

    def _run_parallel(self, order: List[Instruction], tally: RunTally, verbose: bool) -> List[ClassificationResult]:
        executor = ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="verifier")
        futures: Dict[Future, Instruction] = {}
        try:
            for instruction in order:
                futures[executor.submit(self._classify_and_record, instruction, tally, verbose)] = instruction
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                if future.exception() is not None:
                    raise future.exception()
        except BaseException:
            for future in futures:
                future.cancel()
            self.verifier.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        by_instruction = {futures[future]: future.result() for future in futures}
        return [by_instruction[instruction] for instruction in order]
