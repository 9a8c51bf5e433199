"""Fetch-step synthesis for generated melange configs.

For every ``source`` entry of a descriptor the APKBUILD placeholders are
expanded, the artifact is downloaded and hashed, and a ``fetch`` pipeline
step is produced. Download failures and checksum drift never abort the run;
the step is still emitted with a sentinel in place of the digest.
"""
from __future__ import annotations

import hashlib
import logging
import posixpath
import re
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlsplit

from apkbuild.models import Descriptor
from common.errors import FetchError, ValidationError
from common.logging_utils import safe_url
from .models import CHECKSUM_MISMATCH, SOURCE_URL_NOT_VALID, VERSION_PLACEHOLDER, Pipeline

logger = logging.getLogger(__name__)

_BARE_VERSION_RE = re.compile(r"\$_?pkgver(?![A-Za-z0-9_])")
_BARE_NAME_RE = re.compile(r"\$_?pkgname(?![A-Za-z0-9_])")


def split_source(entry: str) -> Tuple[Optional[str], str]:
    """Split an APKBUILD ``filename::uri`` source entry.

    Returns:
        (filename or None, uri template)
    """
    if "::" in entry:
        filename, uri = entry.split("::", 1)
        return filename or None, uri
    return None, entry


def substitute_placeholders(
    template: str, descriptor: Descriptor, version_text: Optional[str] = None
) -> str:
    """Replace the version and name placeholders APKBUILD sources commonly use.

    ``version_text``, when given, is written wherever the plain version
    placeholder appears; derived forms such as ``${pkgver%.*}`` always get
    the real version. Literal text in the template is never touched.
    """
    real_version = descriptor.version
    version = real_version if version_text is None else version_text
    name = descriptor.name
    braced = (
        ("${pkgver%.*}", real_version.rsplit(".", 1)[0]),
        ("${pkgver//./-}", real_version.replace(".", "-")),
        ("${pkgver//./_}", real_version.replace(".", "_")),
        ("${pkgver}", version),
        ("${_pkgver}", version),
        ("${pkgname}", name),
        ("${_pkgname}", name),
    )
    for token, value in braced:
        template = template.replace(token, value)
    template = _BARE_VERSION_RE.sub(lambda _m: version, template)
    return _BARE_NAME_RE.sub(lambda _m: name, template)


def validate_uri(uri: str) -> None:
    """Raise ValidationError unless ``uri`` is an absolute URI with a host."""
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        raise ValidationError(f"parsing URI {uri}: {exc}") from exc
    if not parts.scheme or not parts.netloc:
        raise ValidationError(f"parsing URI {uri}: not an absolute URI")


def artifact_filename(uri: str, rename: Optional[str] = None) -> str:
    """Return the file name a source is stored under, as keyed in sha512sums."""
    if rename:
        return rename
    return posixpath.basename(unquote(urlsplit(uri).path))


def _expected_sha256(descriptor: Descriptor, uri: str, filename: str, client) -> str:
    try:
        status, body = client.fetch(uri)
    except FetchError as exc:
        logger.warning("failed getting URI %s: %s", safe_url(uri), exc)
        return SOURCE_URL_NOT_VALID
    if status != 200:
        logger.warning("non ok http response for URI %s code: %s", safe_url(uri), status)
        return SOURCE_URL_NOT_VALID

    # TODO: melange supports expected-sha512; publish the verified digest instead of sha256
    digest = hashlib.sha256(body).hexdigest()
    declared = descriptor.sha512sums.get(filename)
    if declared:
        actual = hashlib.sha512(body).hexdigest()
        if actual.lower() != declared.strip().lower():
            logger.warning(
                "%s: sha512 for %s does not match the APKBUILD (got %s)",
                descriptor.name, filename, actual,
            )
            return CHECKSUM_MISMATCH
    return digest


def build_fetch_steps(descriptor: Descriptor, client) -> List[Pipeline]:
    """Build one ``fetch`` step per declared source.

    A source that does not expand to an absolute URI (typically a patch
    shipped next to the APKBUILD) still gets a step, flagged with
    SOURCE_URL_NOT_VALID, and does not stop the remaining sources.

    Args:
        descriptor: Resolved descriptor.
        client: Object with ``fetch(uri) -> (status, bytes)``.

    Returns:
        List of fetch steps, empty when the descriptor has no sources.

    Raises:
        ValidationError: When the descriptor has no version.
    """
    if not descriptor.source:
        logger.info("skip adding pipeline for package %s, no source URL found", descriptor.name)
        return []
    if not descriptor.version:
        raise ValidationError(f"no package version for {descriptor.name or descriptor.key}")

    steps = []
    for entry in descriptor.source:
        rename, template = split_source(entry)
        uri = substitute_placeholders(template, descriptor)
        published = substitute_placeholders(template, descriptor, VERSION_PLACEHOLDER)
        if rename:
            rename = substitute_placeholders(rename, descriptor)
        try:
            validate_uri(uri)
        except ValidationError as exc:
            logger.warning("%s: %s", descriptor.name, exc)
            expected = SOURCE_URL_NOT_VALID
        else:
            expected = _expected_sha256(descriptor, uri, artifact_filename(uri, rename), client)
        steps.append(Pipeline(
            uses="fetch",
            with_={"uri": published, "expected-sha256": expected},
        ))
    return steps
