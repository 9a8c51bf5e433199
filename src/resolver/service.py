"""Transitive build-dependency discovery for APKBUILD descriptors.

Starting from a root descriptor, every ``makedepends`` entry that is not
already published in Wolfi is looked up at a sibling location of the root
APKBUILD (same URI, package directory swapped), parsed, and walked in turn.
The walk is depth-first and sequential; a package already in the resolution
set is never fetched twice, it is only moved later in the discovery order.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

from apkbuild.models import Descriptor
from apkbuild.parser import parse_descriptor
from common.errors import FetchError, ParseError, ResolutionError
from common.logging_utils import safe_url
from .models import ResolutionSet

logger = logging.getLogger(__name__)


def _swap_segment(path: str, current: str, replacement: str) -> Optional[str]:
    segments = path.split("/")
    for i in range(len(segments) - 1, -1, -1):
        if segments[i] == current:
            segments[i] = replacement
            return "/".join(segments)
    return None


def sibling_location(location: str, current: str, dependency: str) -> Optional[str]:
    """Derive a dependency's APKBUILD location from the current package's.

    The last path segment equal to ``current`` is replaced by ``dependency``;
    host names, query strings and partial matches inside other segments are
    left alone. Returns None when no segment matches.
    """
    if not current or not dependency:
        return None
    parts = urlsplit(location)
    if parts.scheme and parts.netloc:
        path = _swap_segment(parts.path, current, dependency)
        if path is None:
            return None
        return urlunsplit(parts._replace(path=path))
    return _swap_segment(location, current, dependency)


def strip_dev_suffix(name: str) -> str:
    """Map a ``-dev`` subpackage name to the package that builds it."""
    if name.endswith("-dev") and len(name) > len("-dev"):
        return name[: -len("-dev")]
    return name


class DependencyResolver:
    """Depth-first walker filling a ResolutionSet.

    Args:
        client: Object with ``fetch(uri) -> (status, bytes)``.
        index: Optional PackageIndex of already published packages.
        resolution_set: Set to populate; a fresh one is created when omitted.
    """

    def __init__(self, client, index=None, resolution_set: Optional[ResolutionSet] = None):
        self.client = client
        self.index = index
        self.resolution_set = resolution_set if resolution_set is not None else ResolutionSet()
        self.edges: Dict[str, List[str]] = {}

    def fetch_descriptor(self, location: str, key: str) -> Descriptor:
        """Fetch and parse one APKBUILD.

        Raises:
            FetchError: on transport errors or a non-200 response.
            ParseError: if the document cannot be decoded.
        """
        status, body = self.client.fetch(location)
        if status != 200:
            raise FetchError(f"non ok http response for {safe_url(location)} code: {status}")
        try:
            return parse_descriptor(body, key=key, location=location)
        except ParseError as exc:
            raise ParseError(f"failed to parse apkbuild {safe_url(location)}: {exc}") from exc

    def load_root(self, location: str, name: Optional[str] = None) -> str:
        """Fetch the root descriptor, register it and return its key.

        Failures here are fatal and propagate to the caller.
        """
        descriptor = self.fetch_descriptor(location, key=name or location)
        key = name or descriptor.name or location
        descriptor.key = key
        self.resolution_set.add(descriptor, key)
        return key

    def resolve(self, name: str) -> List[str]:
        """Discover all build dependencies of ``name`` and return the build order.

        Raises:
            ResolutionError: if ``name`` was never added to the resolution set.
        """
        if name not in self.resolution_set:
            raise ResolutionError(f"no top level APKBUILD found for {name}")
        self._visit(name)
        return self.resolution_set.build_order()

    def _candidates(self, descriptor: Descriptor) -> List[str]:
        deps: List[str] = []
        for dep in descriptor.build_dependencies():
            dep = dep.strip()
            if not dep:
                continue
            if self.index is not None and self.index.exists(dep):
                logger.debug("%s already available in wolfi, skipping", dep)
                continue
            dep = strip_dev_suffix(dep)
            if dep == descriptor.key or dep in deps:
                continue
            deps.append(dep)
        return deps

    def _location_for(self, descriptor: Descriptor, dep: str) -> Optional[str]:
        if not descriptor.location:
            return None
        for current in dict.fromkeys([descriptor.key, descriptor.name]):
            location = sibling_location(descriptor.location, current, dep)
            if location is not None:
                return location
        return None

    def _visit(self, name: str) -> None:
        descriptor = self.resolution_set.get(name)
        edges = self.edges.setdefault(name, [])

        for dep in self._candidates(descriptor):
            if dep in self.resolution_set:
                if dep not in edges:
                    edges.append(dep)
                self._promote(dep)
                continue

            logger.info("looking at %s", dep)
            location = self._location_for(descriptor, dep)
            if location is None:
                logger.warning(
                    "cannot derive APKBUILD location for %s from %s", dep, descriptor.location
                )
                continue

            try:
                dep_descriptor = self.fetch_descriptor(location, key=dep)
            except (FetchError, ParseError) as exc:
                # the location is a guess, so a miss is expected now and then
                logger.warning("failed to get APKBUILD %s: %s", safe_url(location), exc)
                continue

            self.resolution_set.add(dep_descriptor, dep)
            edges.append(dep)
            self._visit(dep)

    def _promote(self, name: str) -> None:
        """Move ``name`` and everything it depends on to the end of the order.

        The moved block is ordered so each package precedes its own
        dependencies, which keeps them ahead of it once the order is reversed.
        """
        postorder: List[str] = []
        seen = set()

        def walk(node: str) -> None:
            seen.add(node)
            for dep in self.edges.get(node, []):
                if dep not in seen and dep in self.resolution_set:
                    walk(dep)
            postorder.append(node)

        walk(name)
        self.resolution_set.promote(*reversed(postorder))
