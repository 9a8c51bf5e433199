"""Data models for parsed APKBUILD descriptors."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

DEPENDS_DEV_PLACEHOLDER = "$depends_dev"


class BuilderType(Enum):
    """Build systems recognised in an APKBUILD ``build()`` function."""
    MAKE = "make"
    CMAKE = "cmake"
    MESON = "meson"


@dataclass
class Descriptor:
    """One parsed APKBUILD file."""
    key: str  # name or URI the descriptor was registered under
    location: Optional[str] = None
    name: str = ""
    version: str = ""
    release: str = ""
    description: str = ""
    url: str = ""
    arch: List[str] = field(default_factory=list)
    license: str = ""
    depends_dev: List[str] = field(default_factory=list)
    makedepends: List[str] = field(default_factory=list)
    subpackages: List[str] = field(default_factory=list)
    source: List[str] = field(default_factory=list)
    sha512sums: Dict[str, str] = field(default_factory=dict)
    builder_type: BuilderType = BuilderType.MAKE

    def build_dependencies(self) -> List[str]:
        """Return makedepends with the ``$depends_dev`` placeholder expanded."""
        deps: List[str] = []
        for dep in self.makedepends:
            if dep == DEPENDS_DEV_PLACEHOLDER:
                deps.extend(self.depends_dev)
            else:
                deps.append(dep)
        return deps
