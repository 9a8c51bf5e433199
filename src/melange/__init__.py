"""melange config generation.

- models.py: document dataclasses and manual-fix sentinels
- fetch.py: fetch steps with checksum verification
- pipeline.py: package block, build-system steps and subpackage splits
- environment.py: build environment block
- writer.py: YAML output
"""

from .environment import build_environment
from .fetch import build_fetch_steps
from .models import MelangeConfig
from .pipeline import map_descriptor
from .writer import write_config

__all__ = [
    "MelangeConfig",
    "build_environment",
    "build_fetch_steps",
    "map_descriptor",
    "write_config",
]
