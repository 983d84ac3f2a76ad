"""Project-level configuration (``typemath.yaml``)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from typemath.errors import TypeMathError

CONFIG_FILENAME = "typemath.yaml"

DEFAULT_MAX_DEPTH = 200

DEFAULT_CONFIG: dict[str, Any] = {
    "indent": "",
    "proof_mode": False,
    "max_depth": DEFAULT_MAX_DEPTH,
    "log_dir": "logs",
    "logging_enabled": True,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


def load_config(project_dir: Path) -> dict[str, Any]:
    """Load ``typemath.yaml`` from *project_dir*, merged over the defaults.

    A missing file yields the defaults.  Keys the defaults do not know
    are passed through untouched.

    Raises:
        TypeMathError: If the file is not a YAML mapping.
    """
    config = dict(DEFAULT_CONFIG)
    path = Path(project_dir) / CONFIG_FILENAME
    if not path.exists():
        return config

    try:
        user_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise TypeMathError(f"Invalid {CONFIG_FILENAME}: {exc}") from exc

    if user_config is None:
        return config
    if not isinstance(user_config, dict):
        raise TypeMathError(f"{CONFIG_FILENAME} must contain a mapping, got {type(user_config).__name__}")

    config.update(user_config)
    config["max_depth"] = int(config["max_depth"])
    return config


def write_default_config(project_dir: Path) -> Path:
    """Write a ``typemath.yaml`` holding the defaults; refuse to overwrite."""
    path = Path(project_dir) / CONFIG_FILENAME
    if path.exists():
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False), encoding="utf-8")
    return path
