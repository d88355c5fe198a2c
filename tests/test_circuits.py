from pathlib import Path

import pytest

from circuit_check.circuits import list_circuits, load_catalog, parse_circuit, read_program
from circuit_check.exceptions import CircuitParseError
from circuit_check.models import Instruction

VANDPD_LISTING = """\
  .text
  .globl target
  .type target, @function

#! file-offset 0
#! rip-offset  0
#! capacity    5 bytes

# Text                                  #  Line  RIP   Bytes  Opcode
.target:                                #        0     0      OPC=<label>
  callq .move_256_128_ymm2_xmm10_xmm11  #  1     0     5      OPC=callq_label
  callq .move_256_128_ymm3_xmm12_xmm13  #  2     0x5   5      OPC=callq_label
  vandps %xmm11, %xmm13, %xmm11         #  3     0xa   5      OPC=vandps_xmm_xmm_xmm
  vandps %xmm12, %xmm2, %xmm10          #  4     0xf   5      OPC=vandps_xmm_xmm_xmm
  callq .move_128_256_xmm10_xmm11_ymm1  #  5     0x14  5      OPC=callq_label
  retq                                  #  6     0x19  1      OPC=retq

.size target, .-target
"""


def test_parse_circuit_reads_opcode_annotations(tmp_path: Path) -> None:
    path = tmp_path / "vandpd_ymm_ymm_ymm.s"
    path.write_text(VANDPD_LISTING, encoding="utf-8")

    circuit = parse_circuit(path)

    assert circuit.instruction == Instruction("vandpd_ymm_ymm_ymm")
    assert circuit.references == {
        Instruction("callq_label"),
        Instruction("vandps_xmm_xmm_xmm"),
        Instruction("retq"),
    }
    assert circuit.path == path


def test_parse_circuit_rejects_wrong_extension(tmp_path: Path) -> None:
    path = tmp_path / "vandpd_ymm_ymm_ymm.asm"
    path.write_text(VANDPD_LISTING, encoding="utf-8")

    with pytest.raises(CircuitParseError) as excinfo:
        parse_circuit(path, ".s")

    assert excinfo.value.failures[0][0] == path
    assert ".s" in excinfo.value.failures[0][1]


def test_list_circuits_skips_other_extensions(write_circuits) -> None:
    circuit_dir = write_circuits({"b_op": ["a_op"], "a_op": ["addq_r64_r64"]})
    (circuit_dir / "notes.txt").write_text("not a circuit", encoding="utf-8")

    circuits = list_circuits(circuit_dir)

    assert [str(c.instruction) for c in circuits] == ["a_op", "b_op"]


def test_load_catalog_maps_instruction_to_references(write_circuits) -> None:
    circuit_dir = write_circuits({"b_op": ["a_op", "addq_r64_r64"], "a_op": []})

    catalog = load_catalog(circuit_dir)

    assert catalog[Instruction("b_op")] == {Instruction("a_op"), Instruction("addq_r64_r64"), Instruction("retq")}
    assert catalog[Instruction("a_op")] == {Instruction("retq")}


def test_all_parse_failures_are_reported_together(write_circuits) -> None:
    circuit_dir = write_circuits({"good_op": []})
    (circuit_dir / "bad_one.s").write_text("garbage without annotations\n", encoding="utf-8")
    (circuit_dir / "bad_two.s").write_bytes(b"\xff\xfe\x00OPC=")

    with pytest.raises(CircuitParseError) as excinfo:
        list_circuits(circuit_dir)

    assert sorted(path.name for path, _ in excinfo.value.failures) == ["bad_one.s", "bad_two.s"]


def test_missing_directory_is_a_parse_error(tmp_path: Path) -> None:
    with pytest.raises(CircuitParseError):
        list_circuits(tmp_path / "does-not-exist")


def test_read_program_returns_source(write_circuits) -> None:
    circuit_dir = write_circuits({"a_op": ["xorq_r64_r64"]})

    assert "OPC=xorq_r64_r64" in read_program(circuit_dir, Instruction("a_op"))
