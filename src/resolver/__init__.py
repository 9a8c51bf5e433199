"""Dependency resolution for APKBUILD descriptors."""

from .models import ResolutionSet
from .service import DependencyResolver, sibling_location, strip_dev_suffix

__all__ = ["ResolutionSet", "DependencyResolver", "sibling_location", "strip_dev_suffix"]
