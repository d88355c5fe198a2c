"""Configuration helpers for loading JSON config files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .exceptions import ConfigError

REPO_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR = REPO_ROOT / "config"
DEFAULT_CONFIG_NAME = "check_config.json"

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_CIRCUIT_EXTENSION = ".s"
DEFAULT_VERIFIER_COMMAND = ("stoke/bin/specgen",)


def load_json_config(file_name: str) -> Dict[str, Any]:
    """Load a JSON config file relative to the repository root."""

    file_path = Path(file_name)
    if not file_path.is_absolute():
        file_path = CONFIG_DIR / file_name

    if not file_path.exists():
        raise FileNotFoundError(f"Config file '{file_name}' does not exist at {file_path}")

    with file_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def auto_load_json_config(file_name: str,
                          tag: str = "default") -> Dict[str, Any]:
    """
    Using tag strategy to load multiple json config from a single file.
    Return a {} item from [{},{}] in json config
    """
    config_data = load_json_config(file_name)

    if isinstance(config_data, list):
        if not config_data:
            raise ConfigError(f"Config file '{file_name}' is an empty list.")

        for config in config_data:
            if tag in config.get("tags", []):
                return config

        # Fallback to the first item if tag not found
        return config_data[0]

    return config_data


@dataclass(frozen=True)
class CheckConfig:
    """Settings for one check run; CLI flags override individual fields."""

    verifier_command: Tuple[str, ...] = DEFAULT_VERIFIER_COMMAND
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    circuit_extension: str = DEFAULT_CIRCUIT_EXTENSION
    jobs: int = 1
    deny_list: frozenset = field(default_factory=frozenset)
    results_dir: Path = REPO_ROOT / "results"

    def resolved_verifier_command(self) -> List[str]:
        """Resolve a relative executable path (e.g. stoke/bin/specgen) against the repo root."""
        executable, *rest = self.verifier_command
        exe_path = Path(executable)
        if not exe_path.is_absolute() and len(exe_path.parts) > 1:
            executable = str(REPO_ROOT / exe_path)
        return [executable, *rest]


def check_config_from_dict(data: Dict[str, Any]) -> CheckConfig:
    command = data.get("verifier_command", list(DEFAULT_VERIFIER_COMMAND))
    if isinstance(command, str):
        command = [command]
    if not isinstance(command, list) or not command or not all(isinstance(part, str) for part in command):
        raise ConfigError("verifier_command must be a non-empty list of strings")

    try:
        timeout = float(data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
        jobs = int(data.get("jobs", 1))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc
    if timeout <= 0:
        raise ConfigError("timeout_seconds must be positive")
    if jobs < 1:
        raise ConfigError("jobs must be at least 1")

    extension = data.get("circuit_extension", DEFAULT_CIRCUIT_EXTENSION)
    if not isinstance(extension, str) or not extension.startswith("."):
        raise ConfigError("circuit_extension must be a string starting with '.'")

    deny_list = data.get("deny_list", [])
    if not isinstance(deny_list, list):
        raise ConfigError("deny_list must be a list of opcodes")

    results_dir = Path(data.get("results_dir", "results"))
    if not results_dir.is_absolute():
        results_dir = REPO_ROOT / results_dir

    return CheckConfig(
        verifier_command=tuple(command),
        timeout_seconds=timeout,
        circuit_extension=extension,
        jobs=jobs,
        deny_list=frozenset(str(opcode) for opcode in deny_list),
        results_dir=results_dir,
    )


def load_check_config(file_name: str = DEFAULT_CONFIG_NAME, tag: str = "default") -> CheckConfig:
    """Load the check settings, falling back to built-in defaults when the file is absent."""
    try:
        data = auto_load_json_config(file_name, tag)
    except FileNotFoundError:
        if file_name != DEFAULT_CONFIG_NAME:
            raise
        return CheckConfig()
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file '{file_name}' is not valid JSON: {exc}") from exc
    return check_config_from_dict(data)
