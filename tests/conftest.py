import sys
import textwrap
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Tuple

import pytest

from circuit_check.models import Instruction, VerifierRun
from circuit_check.verifiers.base import BaseVerifier


def circuit_listing(opcodes: Iterable[str]) -> str:
    """Render a minimal STOKE-style listing that uses the given opcodes."""
    lines = [
        "  .text",
        "  .globl target",
        "  .type target, @function",
        "",
        "# Text                                  #  Line  RIP   Bytes  Opcode",
        ".target:                                #        0     0      OPC=<label>",
    ]
    for line_no, opcode in enumerate(opcodes, start=1):
        lines.append(f"  {opcode.split('_')[0]} %xmm1, %xmm2                 #  {line_no}     0     5      OPC={opcode}")
    lines.append("  retq                                  #  99    0     1      OPC=retq")
    lines.append("")
    lines.append(".size target, .-target")
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_circuits(tmp_path: Path) -> Callable[[Dict[str, List[str]]], Path]:
    def _write(catalog: Dict[str, List[str]]) -> Path:
        circuit_dir = tmp_path / "circuits"
        circuit_dir.mkdir(exist_ok=True)
        for opcode, uses in catalog.items():
            (circuit_dir / f"{opcode}.s").write_text(circuit_listing(uses), encoding="utf-8")
        return circuit_dir

    return _write


class RecordingVerifier(BaseVerifier):
    """Verifier double answering from a table and recording every call."""

    def __init__(self, runs: Dict[str, VerifierRun], default: VerifierRun | None = None):
        self.runs = runs
        self.default = default or VerifierRun(returncode=0)
        self.calls: List[Tuple[Instruction, float]] = []
        self.cancelled = False

    def invoke(self, instruction: Instruction, timeout_seconds: float) -> VerifierRun:
        self.calls.append((instruction, timeout_seconds))
        return self.runs.get(instruction.opcode, self.default)

    def cancel(self) -> None:
        self.cancelled = True

    def called_with(self, opcode: str) -> int:
        return sum(1 for instruction, _ in self.calls if instruction.opcode == opcode)


@pytest.fixture
def fake_specgen(tmp_path: Path) -> Path:
    """A stand-in for `specgen compare` whose exit status depends on the opcode prefix."""
    script = tmp_path / "fake_specgen.py"
    script.write_text(
        f"#!{sys.executable}\n"
        + textwrap.dedent(
            """
            import os
            import sys
            import time

            args = sys.argv[1:]
            assert args[0] == "compare", args
            circuit_dir = args[args.index("--circuit_dir") + 1]
            opcode = args[args.index("--opcode") + 1]

            if opcode.startswith("ok_"):
                print("Circuits are equivalent")
                sys.exit(0)
            if opcode.startswith("neq_"):
                print("counterexample: rax = 0x1")
                sys.exit(4)
            if opcode.startswith("unsup_"):
                print("unsupported opcode", opcode)
                sys.exit(2)
            if opcode.startswith("hang_"):
                with open(os.path.join(circuit_dir, opcode + ".pid"), "w") as handle:
                    handle.write(str(os.getpid()))
                time.sleep(60)
                sys.exit(0)
            if opcode.startswith("cwd_"):
                print(os.getcwd())
                sys.exit(0)
            print("segfault in validator", file=sys.stderr)
            sys.exit(7)
            """
        ),
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script
