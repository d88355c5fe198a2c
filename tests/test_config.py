import json
from pathlib import Path

import pytest

from circuit_check.config import REPO_ROOT, CheckConfig, load_check_config
from circuit_check.exceptions import ConfigError


def test_bundled_config_has_deny_list() -> None:
    config = load_check_config()

    assert config.timeout_seconds == 15
    assert config.circuit_extension == ".s"
    assert "vaddss_xmm_xmm_xmm" in config.deny_list
    assert len(config.deny_list) == 15


def test_tag_selects_entry(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps([
        {"tags": ["default"], "jobs": 1},
        {"tags": ["fast"], "jobs": 8, "timeout_seconds": 2},
    ]), encoding="utf-8")

    config = load_check_config(str(path), tag="fast")

    assert config.jobs == 8
    assert config.timeout_seconds == 2.0


def test_invalid_values_raise(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"timeout_seconds": 0}), encoding="utf-8")

    with pytest.raises(ConfigError):
        load_check_config(str(path))


def test_explicit_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_check_config(str(tmp_path / "missing.json"))


def test_relative_verifier_path_resolves_against_repo() -> None:
    config = CheckConfig(verifier_command=("stoke/bin/specgen",))
    assert config.resolved_verifier_command() == [str(REPO_ROOT / "stoke/bin/specgen")]

    on_path = CheckConfig(verifier_command=("timeout", "15s", "specgen"))
    assert on_path.resolved_verifier_command() == ["timeout", "15s", "specgen"]
