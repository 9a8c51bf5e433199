"""Line-oriented parser for APKBUILD descriptors.

APKBUILD files are shell scripts, but only a fixed set of top level variable
assignments matter for conversion. The parser tokenizes the document into
logical lines (joining multi-line double-quoted values), picks out the known
assignments and sniffs the build() body for cmake/meson invocations. Anything
it does not understand is skipped, never fatal.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Union

from common.errors import ParseError
from common.logging_utils import extra_context, is_debug_enabled
from .models import BuilderType, Descriptor

logger = logging.getLogger(__name__)

_ASSIGNMENT_RE = re.compile(r"^([^=]*)=(.*)$", re.DOTALL)
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FUNCTION_START_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*\s*\(\)\s*(\{.*)?$")

# Optional VAR=value prefixes, then the command word.
_BUILDER_RE = re.compile(
    r"""^(?:[A-Za-z_][A-Za-z0-9_]*=(?:"[^"]*"|'[^']*'|\S)*\s+)*"""
    r"""(?:abuild-)?(cmake|meson|make)(?:\s|$)"""
)

_SCALAR_FIELDS = {
    "pkgname": "name",
    "pkgver": "version",
    "pkgrel": "release",
    "pkgdesc": "description",
    "url": "url",
    "license": "license",
}
_REPLACE_LIST_FIELDS = {
    "arch": "arch",
    "depends_dev": "depends_dev",
    "subpackages": "subpackages",
}
_APPEND_LIST_FIELDS = {
    "makedepends": "makedepends",
    "makedepends_host": "makedepends",
}
KNOWN_FIELDS = (
    set(_SCALAR_FIELDS) | set(_REPLACE_LIST_FIELDS) | set(_APPEND_LIST_FIELDS)
    | {"source", "sha512sums"}
)


def _normalize_token(token: str) -> str:
    """Flatten a multi-line quoted token so it can be split on spaces."""
    token = token.replace("\n", " ")
    token = token.replace("\t", "")
    token = token.replace("  ", " ")
    return token.strip()


def tokenize(text: str) -> List[str]:
    """Split descriptor text into logical lines.

    A physical line holding a double quote is extended up to the matching
    closing quote, so quoted values may span several lines. An unterminated
    quote runs to the end of the document. Comment lines are never extended.
    """
    tokens: List[str] = []
    pos = 0
    end_of_text = len(text)
    while pos < end_of_text:
        newline = text.find("\n", pos)
        line_end = end_of_text if newline == -1 else newline + 1
        quote = text.find('"', pos, line_end)
        if quote != -1 and not text[pos:line_end].lstrip().startswith("#"):
            closing = text.find('"', quote + 1)
            token_end = end_of_text if closing == -1 else closing + 1
            tokens.append(_normalize_token(text[pos:token_end]))
            pos = token_end
        else:
            tokens.append(text[pos:line_end])
            pos = line_end
    return tokens


def _strip_quotes(value: str) -> str:
    value = value.strip().replace('"', "")
    if len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1]
    return value.strip()


def split_list(value: str) -> List[str]:
    """Split a list value on whitespace."""
    return value.split()


def parse_checksums(value: str, key: str = "") -> Dict[str, str]:
    """Parse an interleaved ``checksum filename`` list.

    A blank token in filename position is skipped once so a stray double
    space does not shift every following pair.
    """
    sums: Dict[str, str] = {}
    parts = value.split(" ")
    i = 0
    while i < len(parts):
        checksum = parts[i].strip()
        i += 1
        if not checksum:
            continue
        artifact = ""
        if i < len(parts) and parts[i].strip():
            artifact = parts[i].strip()
            i += 1
        elif i + 1 < len(parts) and parts[i + 1].strip():
            artifact = parts[i + 1].strip()
            i += 2
        if not artifact:
            logger.warning("%s: checksum %s does not have an artifact", key, checksum)
            continue
        sums[artifact] = checksum
    return sums


def detect_builder(line: str) -> Optional[BuilderType]:
    """Return the build system invoked by a shell command line, if any."""
    match = _BUILDER_RE.match(line)
    if not match:
        return None
    return BuilderType(match.group(1))


def _apply_assignment(descriptor: Descriptor, name: str, value: str) -> None:
    if name in _SCALAR_FIELDS:
        setattr(descriptor, _SCALAR_FIELDS[name], value)
    elif name in _REPLACE_LIST_FIELDS:
        setattr(descriptor, _REPLACE_LIST_FIELDS[name], split_list(value))
    elif name in _APPEND_LIST_FIELDS:
        getattr(descriptor, _APPEND_LIST_FIELDS[name]).extend(split_list(value))
    elif name == "source":
        descriptor.source.extend(part for part in value.split() if part.strip())
    elif name == "sha512sums":
        descriptor.sha512sums.update(parse_checksums(value, descriptor.key))


def parse_descriptor(
    data: Union[bytes, str], key: str, location: Optional[str] = None
) -> Descriptor:
    """Parse raw APKBUILD content into a Descriptor.

    Args:
        data: Raw document, bytes or already decoded text.
        key: Name or URI the descriptor is registered under.
        location: Where the document was fetched from, if known.

    Returns:
        Descriptor: populated from the recognised assignments.

    Raises:
        ParseError: If the document cannot be decoded into text at all.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"decoding APKBUILD {key}: {exc}") from exc
    elif isinstance(data, str):
        text = data
    else:
        raise ParseError(f"APKBUILD {key} is not text (got {type(data).__name__})")

    descriptor = Descriptor(key=key, location=location)
    builder_seen = False
    in_function = False

    for token in tokenize(text):
        line = token.strip()
        if not line or line.startswith("#"):
            continue

        if _FUNCTION_START_RE.match(line):
            # one-line bodies open and close on the same line
            in_function = not line.endswith("}")
            continue
        if line == "}":
            in_function = False
            continue

        match = _ASSIGNMENT_RE.match(line)
        if match and match.group(1) in KNOWN_FIELDS:
            if in_function:
                # split functions set their own pkgdesc/arch for the subpackage
                logger.debug("%s: ignoring %s assignment inside a function body", key, match.group(1))
            else:
                _apply_assignment(descriptor, match.group(1), _strip_quotes(match.group(2)))
            continue

        builder = detect_builder(line)
        if builder is not None:
            if builder is not BuilderType.MAKE and not builder_seen:
                descriptor.builder_type = builder
                builder_seen = True
            continue

        if match and not _IDENTIFIER_RE.match(match.group(1).strip()):
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping line with unparseable assignment",
                    extra=extra_context(event="parse_skip", component="apkbuild", key=key, line=line[:80]),
                )

    logger.debug("Parsed APKBUILD %s: %s %s", key, descriptor.name, descriptor.version)
    return descriptor
