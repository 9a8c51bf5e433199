"""Build environment block for generated melange configs."""
from __future__ import annotations

from typing import Iterable, List

from apkbuild.models import DEPENDS_DEV_PLACEHOLDER, Descriptor
from constants import Constants
from .models import Environment


def _dev_name(name: str) -> str:
    return name if name.endswith("-dev") else name + "-dev"


def build_environment(
    descriptor: Descriptor,
    additional_repositories: Iterable[str] = (),
    additional_keyrings: Iterable[str] = (),
) -> Environment:
    """Assemble repositories, keyrings and build packages for a descriptor.

    Packages are the base toolchain, then ``makedepends``, then each
    ``depends_dev`` entry as its ``-dev`` package.
    """
    packages: List[str] = list(Constants.ENV_PACKAGES)
    packages.extend(d for d in descriptor.makedepends if d and d != DEPENDS_DEV_PLACEHOLDER)
    packages.extend(_dev_name(d) for d in descriptor.depends_dev if d and not d.startswith("$"))
    return Environment(
        repositories=list(Constants.ENV_REPOSITORIES) + list(additional_repositories),
        keyring=list(Constants.ENV_KEYRING) + list(additional_keyrings),
        packages=packages,
    )
