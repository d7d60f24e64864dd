"""
config.py - Configuration loader for dicomanon.

Loads settings from config.yaml with built-in defaults so that logging and
run options are not hard-coded inside a module.  The replacement values
themselves live in dicomanon.anonymizer and are not configurable.
"""

import copy
import os
import yaml
from typing import Any, Optional

from dicomanon.errors import ArgumentError

# Resolve the config file relative to the repo root, not the CWD,
# so imports work regardless of where the tool is launched from.
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_CONFIG_PATH = os.path.join(_REPO_ROOT, "config.yaml")

CONFIG_ENV_VAR = "DICOMANON_CONFIG"

_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)-8s %(message)s",
    },
    "anonymization": {
        "allow_missing": False,
        "seed": None,
    },
    "paths": {
        "sample_folder": "data/raw",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base*, returning a new dict."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def default_config_path() -> str:
    """Return $DICOMANON_CONFIG if set, otherwise the repo-root config.yaml."""
    return os.environ.get(CONFIG_ENV_VAR) or _CONFIG_PATH


def load_config(config_path: Optional[str] = None) -> dict[str, Any]:
    """
    Load the YAML configuration file and merge it with built-in defaults.

    Parameters
    ----------
    config_path : str, optional
        Path to a YAML file.  Defaults to ``default_config_path()``.
        A missing file is not an error; the defaults are returned.

    Returns
    -------
    dict
        Merged configuration dictionary.

    Raises
    ------
    ArgumentError
        If the document or one of its known sections is not a mapping.
    """
    if config_path is None:
        config_path = default_config_path()

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
    else:
        user_config = {}

    if not isinstance(user_config, dict):
        raise ArgumentError(
            f"{config_path}: top level must be a mapping, not {type(user_config).__name__}",
            option="--config",
        )
    for section in _DEFAULTS:
        if section in user_config and not isinstance(user_config[section], dict):
            raise ArgumentError(
                f"{config_path}: section '{section}' must be a mapping",
                option="--config",
            )

    return _deep_merge(_DEFAULTS, user_config)


# Module-level singleton so callers can just do `from dicomanon.config import CONFIG`
CONFIG = load_config()
