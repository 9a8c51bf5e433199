"""APKBUILD descriptor parsing."""

from .models import BuilderType, Descriptor, DEPENDS_DEV_PLACEHOLDER
from .parser import parse_descriptor, tokenize

__all__ = [
    "BuilderType",
    "Descriptor",
    "DEPENDS_DEV_PLACEHOLDER",
    "parse_descriptor",
    "tokenize",
]
