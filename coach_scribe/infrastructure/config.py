#!/usr/bin/env python3
"""
Coach Scribe - Configuration Loader
Loads settings from TOML files
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from coach_scribe.domain import Settings

PROJECT_ROOT = Path(__file__).parent.parent.parent


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dictionaries (override wins)

    Args:
        base: Base dictionary
        override: Dictionary whose values take precedence

    Returns:
        The merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], Mapping)
            and isinstance(value, Mapping)
        ):
            result[key] = _deep_merge(dict(result[key]), dict(value))
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Load settings from TOML files

    Load order (later wins):
    1. Defaults (domain/settings.py) and environment variables
    2. config.toml, or `config_path` when given
    3. config.local.toml next to it (if present)

    Args:
        config_path: Explicit configuration file (None = project root config.toml)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: `config_path` was given but does not exist
    """
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    config_path = config_path or PROJECT_ROOT / "config.toml"
    local_config_path = config_path.with_name("config.local.toml")

    config_data: dict[str, Any] = {}
    if config_path.exists():
        config_data = _read_toml(config_path)

    if local_config_path.exists():
        config_data = _deep_merge(config_data, _read_toml(local_config_path))

    return Settings(**config_data) if config_data else Settings()
