"""Custom exceptions for the circuit check pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence, Tuple


class CircuitCheckError(RuntimeError):
    """Base class for domain-specific runtime errors."""


class ConfigError(CircuitCheckError):
    """Raised when a config file is present but holds invalid values."""


class CircuitParseError(CircuitCheckError):
    """Raised when one or more circuit files cannot be parsed."""

    def __init__(self, failures: Sequence[Tuple[Path, str]]):
        self.failures = list(failures)
        details = "; ".join(f"{path.name}: {reason}" for path, reason in self.failures)
        super().__init__(f"Failed to parse {len(self.failures)} circuit file(s): {details}")


class CyclicDependencyError(CircuitCheckError):
    """Raised when the circuit catalog does not form a DAG."""

    def __init__(self, nodes: Iterable[object]):
        self.nodes = list(nodes)
        cycle = " -> ".join(str(node) for node in self.nodes)
        super().__init__(f"Circuit dependencies contain a cycle: {cycle}")


class VerifierUnavailableError(CircuitCheckError):
    """Raised when the external verifier cannot be started at all."""


class VerifierUnexpectedStatusError(CircuitCheckError):
    """Raised when the verifier exits with a status outside its contract."""

    def __init__(self, instruction: object, returncode: int | None, output: str = ""):
        self.instruction = instruction
        self.returncode = returncode
        self.output = output
        super().__init__(f"Unexpected verifier status {returncode} for {instruction}")
