"""Engine configuration: defaults merged with an optional ``gridcalc.yaml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "gridcalc.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "max_depth": 2000,
    "display_decimals": 10,
    "memoize": False,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}

_POSITIVE_INT_KEYS = ("max_depth", "logging_tail_bytes")
_BOOL_KEYS = ("memoize", "logging_fsync")


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load engine configuration, with defaults.

    Args:
        path: A YAML file, or a directory containing ``gridcalc.yaml``.
            ``None`` returns the defaults.  A directory without a config
            file also yields the defaults.

    Returns:
        Merged configuration dict.

    Raises:
        FileNotFoundError: If *path* names a file that does not exist.
        ValueError: If the file is not a mapping or a value is invalid.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config

    config_path = Path(path)
    if config_path.is_dir():
        config_path = config_path / CONFIG_FILENAME
        if not config_path.exists():
            return config
    elif not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    user_config = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(user_config, dict):
        raise ValueError(f"{config_path}: expected a mapping at the top level")
    config.update(user_config)
    validate_config(config)
    return config


def validate_config(config: dict[str, Any]) -> None:
    """Raise ``ValueError`` for out-of-range or mistyped settings."""
    for key in _POSITIVE_INT_KEYS:
        value = config[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"{key} must be a positive integer, got {value!r}")
    for key in _BOOL_KEYS:
        if not isinstance(config[key], bool):
            raise ValueError(f"{key} must be true or false, got {config[key]!r}")
    decimals = config["display_decimals"]
    if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 15:
        raise ValueError(f"display_decimals must be an integer in 0..15, got {decimals!r}")
