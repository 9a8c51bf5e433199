"""Serialize generated melange configs to YAML files."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

import yaml

from common.errors import WriteError
from .models import MelangeConfig

logger = logging.getLogger(__name__)


def config_filename(order: Union[int, str], name: str) -> str:
    """File name for a config; the order prefix lets users re-sort output by hand."""
    return f"{order}0-{name}.yaml"


def render_config(config: MelangeConfig) -> str:
    """Render a config as YAML preceded by a ``# Generated from`` comment."""
    body = yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False, width=4096)
    return f"# Generated from {config.generated_from}\n{body}"


def write_config(config: MelangeConfig, order: Union[int, str], out_dir: Union[str, os.PathLike]) -> Path:
    """Write ``config`` into ``out_dir`` and return the file path.

    Raises:
        WriteError: if the directory or file cannot be written.
    """
    out_path = Path(out_dir)
    target = out_path / config_filename(order, config.package.name or "unnamed")
    try:
        out_path.mkdir(parents=True, exist_ok=True)
        target.write_text(render_config(config), encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"writing melange config {target}: {exc}") from exc
    logger.info("wrote %s", target)
    return target
