"""Wolfi package repository index.

The Wolfi package bucket exposes an S3 style ``ListBucketResult`` listing.
Each ``<Key>`` is a path to an ``.apk`` file; the package name is recovered by
cutting the ``<version>-r<release>.<ext>`` suffix off the final path segment.
The resulting map lets the resolver skip dependencies that are already built.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, Iterator, List, Optional, Union

from constants import Constants
from common.errors import FetchError, ParseError
from common.logging_utils import safe_url

logger = logging.getLogger(__name__)

SKIPPED_SUFFIXES = ("wolfi-signing.rsa.pub", "APKINDEX.tar.gz")

_VERSION_SUFFIX_RE = re.compile(
    r"([+-]?(=\.\d|\d)(?:\d+)?(?:\.?\d*))(?:[eE]([+-]?\d+))?"
    r"([+-]?(=\.\d|\d)(?:\d+)?(?:\.?\d*))(?:[eE]([+-]?\d+))?-r[0-9]+\.[a-zA-Z]+"
)


def _local_name(tag: str) -> str:
    """Drop an ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def package_name(filename: str) -> str:
    """Infer a package name from an ``.apk`` file name."""
    return _VERSION_SUFFIX_RE.split(filename, maxsplit=1)[0]


def _iter_keys(root: ET.Element) -> Iterator[str]:
    for element in root.iter():
        if _local_name(element.tag) != "Contents":
            continue
        for child in element:
            if _local_name(child.tag) == "Key" and child.text:
                yield child.text.strip()


def parse_packages(data: Union[bytes, str]) -> Dict[str, List[str]]:
    """Parse a bucket listing into ``{package name: [keys]}``.

    Raises:
        ParseError: If the listing is not well-formed XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ParseError(f"unmarshalling wolfi-os data: {exc}") from exc

    truncated = next((e for e in root if _local_name(e.tag) == "IsTruncated"), None)
    if truncated is not None and (truncated.text or "").strip().lower() == "true":
        logger.warning("Wolfi package listing is truncated; some packages may be regenerated")

    packages: Dict[str, List[str]] = {}
    for key in _iter_keys(root):
        if key.endswith(SKIPPED_SUFFIXES):
            continue
        name = package_name(key.rsplit("/", 1)[-1])
        if not name:
            continue
        packages.setdefault(name, []).append(key)
    return packages


class PackageIndex:
    """Read-only lookup of packages already published in Wolfi."""

    def __init__(self, packages: Optional[Dict[str, List[str]]] = None):
        self._packages = dict(packages or {})

    @classmethod
    def fetch(cls, client, url: Optional[str] = None) -> "PackageIndex":
        """Download and parse the bucket listing at ``url``.

        Raises:
            FetchError: If the listing cannot be retrieved.
            ParseError: If the listing cannot be decoded.
        """
        url = url or Constants.WOLFI_INDEX_URL
        status, body = client.fetch(url)
        if status != 200:
            raise FetchError(f"non ok http response for URI {safe_url(url)} code: {status}")
        index = cls(parse_packages(body))
        logger.info("Loaded %d packages from %s", len(index), safe_url(url))
        return index

    def exists(self, name: str) -> bool:
        return bool(self._packages.get(name))

    def listings(self, name: str) -> List[str]:
        return list(self._packages.get(name, []))

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __len__(self) -> int:
        return len(self._packages)
