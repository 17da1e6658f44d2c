"""TOML configuration loader.

Loads defaults.toml shipped with the package and deep-merges an optional
user override file on top of it.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from xc.schemas.config import XCConfig

_CONFIG_DIR = Path(__file__).parent
DEFAULTS_PATH = _CONFIG_DIR / "defaults.toml"

# Environment variable naming a user override file
CONFIG_ENV = "XC_CONFIG"


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> XCConfig:
    """Load the XC configuration.

    Args:
        config_path: Optional user override file. Falls back to the path in
            the XC_CONFIG environment variable, then to defaults only.

    Returns:
        The merged XCConfig.

    Raises:
        FileNotFoundError: If an override file is named but missing.
        ValueError: If a file is not valid TOML or a value fails validation.
    """
    raw = _read_toml(DEFAULTS_PATH)

    override = config_path
    if override is None and os.environ.get(CONFIG_ENV):
        override = Path(os.environ[CONFIG_ENV])
    if override is not None:
        raw = _merge(raw, _read_toml(Path(override).expanduser()))

    try:
        return XCConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
