"""APKBUILD to melange conversion run.

Ties the pieces together: load the root APKBUILD, discover its build
dependencies, then generate and write one melange config per package with
the deepest dependency first.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from common.errors import ValidationError, WriteError
from common.http_client import HttpClient
from melange import build_environment, build_fetch_steps, map_descriptor, write_config
from melange.models import MelangeConfig
from registry.wolfi import PackageIndex
from resolver import DependencyResolver, ResolutionSet

logger = logging.getLogger(__name__)


class Converter:
    """One resolution run over a root APKBUILD.

    Args:
        client: Object with ``fetch(uri) -> (status, bytes)``.
        index: Packages already published; dependencies found here are skipped.
        out_dir: Directory generated configs are written to.
        additional_repositories: Extra repositories for the build environment.
        additional_keyrings: Extra keyrings for the build environment.
    """

    def __init__(
        self,
        client,
        index: Optional[PackageIndex] = None,
        out_dir: str = "generated",
        additional_repositories: Iterable[str] = (),
        additional_keyrings: Iterable[str] = (),
    ):
        self.client = client
        self.index = index
        self.out_dir = out_dir
        self.additional_repositories = list(additional_repositories)
        self.additional_keyrings = list(additional_keyrings)
        self.resolution_set = ResolutionSet()
        self.warnings = 0

    @classmethod
    def new(cls, client: Optional[HttpClient] = None, index_url: Optional[str] = None, **kwargs) -> "Converter":
        """Create a converter with the Wolfi index already loaded.

        Raises:
            FetchError: If the index cannot be downloaded.
            ParseError: If the index cannot be decoded.
        """
        client = client or HttpClient()
        index = PackageIndex.fetch(client, index_url)
        return cls(client, index=index, **kwargs)

    def resolve(self, location: str, name: Optional[str] = None) -> List[str]:
        """Load the root APKBUILD and all reachable dependencies; return the build order."""
        resolver = DependencyResolver(self.client, self.index, self.resolution_set)
        root = resolver.load_root(location, name)
        return resolver.resolve(root)

    def build_config(self, name: str) -> MelangeConfig:
        """Generate the melange config for one resolved package."""
        descriptor = self.resolution_set.get(name)
        try:
            fetch_steps = build_fetch_steps(descriptor, self.client)
        except ValidationError as exc:
            # no version to expand sources with; emit the package without fetch steps
            logger.warning("skipping fetch step for %s: %s", name, exc)
            self.warnings += 1
            fetch_steps = []
        config = map_descriptor(descriptor, fetch_steps)
        config.environment = build_environment(
            descriptor, self.additional_repositories, self.additional_keyrings
        )
        if config.needs_manual_fix():
            logger.warning("%s needs manual follow-up, look for FIXME markers", name)
            self.warnings += 1
        return config

    def generate(self, location: str, name: Optional[str] = None) -> List[Path]:
        """Run the whole conversion and return the written file paths.

        Fatal errors (root APKBUILD unreachable or undecodable) propagate;
        a failure to write one package is logged and the run continues.
        """
        order = self.resolve(location, name)
        logger.info("generating melange configs for %s", ", ".join(order))

        written: List[Path] = []
        for i, key in enumerate(order):
            config = self.build_config(key)
            try:
                written.append(write_config(config, i, self.out_dir))
            except WriteError as exc:
                logger.error("%s", exc)
                self.warnings += 1
        return written
