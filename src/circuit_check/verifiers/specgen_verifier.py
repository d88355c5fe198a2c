from __future__ import annotations

import os
import signal
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Set

from ..exceptions import VerifierUnavailableError
from ..models import Instruction, VerifierRun
from .base import BaseVerifier

EXIT_EQUIVALENT = 0
EXIT_UNSUPPORTED = 2
EXIT_NOT_EQUIVALENT = 4
# exit status of coreutils `timeout` when it had to stop the command
EXIT_TIMEOUT = 124


class SpecgenVerifier(BaseVerifier):
    """Runs ``specgen compare`` from STOKE for one opcode at a time.

    Every invocation gets its own process session and scratch working
    directory, so concurrent invocations cannot see each other's temp files.
    On timeout or interruption the whole process group is killed.
    """

    def __init__(self, command: Sequence[str], circuit_dir: Path):
        if not command:
            raise ValueError("verifier command must not be empty")
        self.command = list(command)
        self.circuit_dir = Path(circuit_dir).resolve()
        self._active: Set[subprocess.Popen] = set()
        self._lock = threading.Lock()
        self._cancelled = False
        self.last_run: Optional[dict] = None

    def build_command(self, instruction: Instruction) -> List[str]:
        return [
            *self.command,
            "compare",
            "--circuit_dir",
            str(self.circuit_dir),
            "--opcode",
            instruction.opcode,
        ]

    def invoke(self, instruction: Instruction, timeout_seconds: float) -> VerifierRun:
        cmd = self.build_command(instruction)
        start = time.monotonic()
        with tempfile.TemporaryDirectory(prefix="specgen_") as work_dir:
            try:
                proc = subprocess.Popen(
                    cmd,
                    cwd=work_dir,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    start_new_session=True,
                )
            except FileNotFoundError as exc:
                raise VerifierUnavailableError(f"Cannot start verifier '{cmd[0]}': {exc}") from exc

            with self._lock:
                self._active.add(proc)
                cancelled = self._cancelled
            if cancelled:
                self._kill(proc)
            timed_out = False
            try:
                try:
                    output, _ = proc.communicate(timeout=timeout_seconds)
                except subprocess.TimeoutExpired:
                    timed_out = True
                    self._kill(proc)
                    output, _ = proc.communicate()
            except BaseException:
                # KeyboardInterrupt or cancellation: never leave specgen running
                self._kill(proc)
                proc.wait()
                raise
            finally:
                with self._lock:
                    self._active.discard(proc)

        elapsed = time.monotonic() - start
        self.last_run = {
            "command": cmd,
            "returncode": proc.returncode,
            "timed_out": timed_out,
            "elapsed_seconds": elapsed,
        }
        return VerifierRun(
            returncode=None if timed_out else proc.returncode,
            output=output or "",
            timed_out=timed_out,
            elapsed_seconds=elapsed,
        )

    def cancel(self) -> None:
        """Kill every running invocation and any that starts before :meth:`reset`."""
        with self._lock:
            self._cancelled = True
            active = list(self._active)
        for proc in active:
            self._kill(proc)

    def reset(self) -> None:
        with self._lock:
            self._cancelled = False

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        # the group may outlive its leader while grandchildren still hold the pipe
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
