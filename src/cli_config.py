"""Configuration file loading and CLI overrides for runtime tunables.

Precedence, lowest to highest: ``Constants`` defaults, the YAML config file
given with ``--config``, then explicit CLI flags.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)

# config file key -> Constants attribute
CONFIG_KEYS = {
    "base_uri_format": "BASE_URI_FORMAT",
    "wolfi_index_url": "WOLFI_INDEX_URL",
    "out_dir": "DEFAULT_OUT_DIR",
    "request_timeout": "REQUEST_TIMEOUT",
    "rate_limit_per_sec": "RATE_LIMIT_PER_SEC",
    "rate_limit_burst": "RATE_LIMIT_BURST",
    "additional_repositories": "ADDITIONAL_REPOSITORIES",
    "additional_keyrings": "ADDITIONAL_KEYRINGS",
    "environment_packages": "ENV_PACKAGES",
}

_LIST_KEYS = {"additional_repositories", "additional_keyrings", "environment_packages"}
_NUMBER_KEYS = {"request_timeout": float, "rate_limit_per_sec": float, "rate_limit_burst": int}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML mapping from ``config_path``.

    Returns an empty dict when no path is given. A missing file, bad YAML or
    a non-mapping document raise ValueError so the CLI can report them.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ValueError(f"config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML in {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {config_path} must contain a mapping")
    return data


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognised config keys onto ``Constants``; unknown keys are logged."""
    for key, value in cfg.items():
        attr = CONFIG_KEYS.get(key)
        if attr is None:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        if key in _LIST_KEYS:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list):
                logger.warning("Config key %s must be a list, ignoring", key)
                continue
            value = [str(v) for v in value]
        elif key in _NUMBER_KEYS:
            try:
                value = _NUMBER_KEYS[key](value)
            except (TypeError, ValueError):
                logger.warning("Config key %s must be a number, ignoring", key)
                continue
        else:
            value = str(value)
        setattr(Constants, attr, value)


def apply_cli_overrides(args) -> None:
    """Apply CLI flags on top of config values (CLI has highest precedence)."""
    if getattr(args, "BASE_URI_FORMAT", None):
        Constants.BASE_URI_FORMAT = args.BASE_URI_FORMAT
    if getattr(args, "WOLFI_INDEX_URL", None):
        Constants.WOLFI_INDEX_URL = args.WOLFI_INDEX_URL
    if getattr(args, "OUT_DIR", None):
        Constants.DEFAULT_OUT_DIR = args.OUT_DIR
    if getattr(args, "ADDITIONAL_REPOSITORIES", None):
        Constants.ADDITIONAL_REPOSITORIES = list(Constants.ADDITIONAL_REPOSITORIES) + list(args.ADDITIONAL_REPOSITORIES)
    if getattr(args, "ADDITIONAL_KEYRINGS", None):
        Constants.ADDITIONAL_KEYRINGS = list(Constants.ADDITIONAL_KEYRINGS) + list(args.ADDITIONAL_KEYRINGS)
