"""Resolution set shared by the dependency walk and the generators."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from apkbuild.models import Descriptor


@dataclass
class ResolutionSet:
    """Descriptors keyed by package name plus their discovery order.

    Every name in ``order`` has exactly one entry in ``descriptors`` and
    vice versa. ``build_order`` is the discovery order reversed, so the most
    recently discovered dependency is built first.
    """
    descriptors: Dict[str, Descriptor] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    def add(self, descriptor: Descriptor, key: Optional[str] = None) -> str:
        """Register a newly discovered descriptor and return its key."""
        key = key or descriptor.key
        if key in self.descriptors:
            raise ValueError(f"package {key} is already in the resolution set")
        self.descriptors[key] = descriptor
        self.order.append(key)
        return key

    def promote(self, *names: str) -> None:
        """Move ``names`` to the end of the discovery order, keeping their relative order."""
        for name in names:
            if name not in self.descriptors:
                raise KeyError(name)
        moving = set(names)
        self.order = [n for n in self.order if n not in moving] + list(dict.fromkeys(names))

    def get(self, name: str) -> Optional[Descriptor]:
        return self.descriptors.get(name)

    def build_order(self) -> List[str]:
        return list(reversed(self.order))

    def __contains__(self, name: object) -> bool:
        return name in self.descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.order))

    def __len__(self) -> int:
        return len(self.order)
