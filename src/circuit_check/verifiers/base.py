from abc import ABC, abstractmethod

from ..models import Instruction, VerifierRun


class BaseVerifier(ABC):
    @abstractmethod
    def invoke(self, instruction: Instruction, timeout_seconds: float) -> VerifierRun:
        """
        Check the learned circuit for one instruction against the reference.
        """
        pass

    def cancel(self) -> None:
        """Terminate any invocation that is still running."""

    def reset(self) -> None:
        """Make the verifier usable again after a cancelled run."""
