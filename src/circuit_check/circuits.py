"""Loading learned circuits from a directory of annotated assembly listings.

Each circuit file is a STOKE-style listing named ``<opcode>.s`` whose lines
carry an ``OPC=<opcode>`` annotation for every instruction the program uses::

    vandps %xmm11, %xmm13, %xmm11   #  3   0xa   5   OPC=vandps_xmm_xmm_xmm
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, FrozenSet, List, Tuple

from .config import DEFAULT_CIRCUIT_EXTENSION
from .exceptions import CircuitParseError
from .models import Circuit, Instruction

_OPCODE_PATTERN = re.compile(r"\bOPC=(\S+)")
_PSEUDO_OPCODES = {"<label>"}


class _ParseFailure(Exception):
    pass


def instruction_for_path(path: Path, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> Instruction:
    name = path.name
    if not name.endswith(extension):
        raise ValueError(f"{name} does not end with {extension}")
    return Instruction(name[: -len(extension)])


def parse_program_text(text: str) -> FrozenSet[Instruction]:
    opcodes = _OPCODE_PATTERN.findall(text)
    if not opcodes:
        raise _ParseFailure("no OPC= annotations found")
    return frozenset(Instruction(opcode) for opcode in opcodes if opcode not in _PSEUDO_OPCODES)


def parse_circuit(path: Path, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> Circuit:
    """Parse a single circuit file into its instruction and references."""
    try:
        instruction = instruction_for_path(path, extension)
        text = path.read_text(encoding="utf-8")
        references = parse_program_text(text)
    except (ValueError, OSError, _ParseFailure) as exc:
        raise CircuitParseError([(path, str(exc))]) from exc
    return Circuit(
        instruction=instruction,
        references=references,
        path=path,
    )


def list_circuits(circuit_dir: Path, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> List[Circuit]:
    """Parse every circuit in ``circuit_dir``.

    All unparsable files are reported together, so the caller never builds a
    graph from a partially read catalog.
    """
    if not circuit_dir.is_dir():
        raise CircuitParseError([(circuit_dir, "circuit directory does not exist")])

    circuits: List[Circuit] = []
    failures: List[Tuple[Path, str]] = []
    for path in sorted(circuit_dir.glob(f"*{extension}")):
        if not path.is_file():
            continue
        try:
            circuits.append(parse_circuit(path, extension))
        except CircuitParseError as exc:
            failures.extend(exc.failures)

    if failures:
        raise CircuitParseError(failures)
    return sorted(circuits, key=lambda circuit: circuit.instruction)


def load_catalog(circuit_dir: Path, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> Dict[Instruction, FrozenSet[Instruction]]:
    return {circuit.instruction: circuit.references for circuit in list_circuits(circuit_dir, extension)}


def read_program(circuit_dir: Path, instruction: Instruction, extension: str = DEFAULT_CIRCUIT_EXTENSION) -> str:
    return (circuit_dir / f"{instruction.opcode}{extension}").read_text(encoding="utf-8")
