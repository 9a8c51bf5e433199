"""Map parsed descriptors onto melange package, pipeline and subpackage blocks."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from apkbuild.models import BuilderType, Descriptor
from .models import (
    Copyright,
    Dependencies,
    MelangeConfig,
    Package,
    Pipeline,
    Subpackage,
    placeholder_step,
)

logger = logging.getLogger(__name__)

_BUILDER_STEPS: Dict[BuilderType, List[str]] = {
    BuilderType.MAKE: ["autoconf/configure", "autoconf/make", "autoconf/make-install"],
    BuilderType.CMAKE: ["cmake/configure", "cmake/build", "cmake/install"],
    BuilderType.MESON: ["meson/configure", "meson/compile", "meson/install"],
}

# subpackage suffix -> split pipeline category
SPLIT_CATEGORIES = {
    "doc": "manpages",
    "dev": "dev",
    "locales": "locales",
    "lang": "locales",
}


def builder_pipeline(builder_type: Optional[BuilderType]) -> List[Pipeline]:
    """Return the configure/build/install steps for a build system."""
    uses = _BUILDER_STEPS.get(builder_type)
    if uses is None:
        logger.warning("unrecognised build system %s, pipeline needs manual completion", builder_type)
        return [placeholder_step()]
    return [Pipeline(uses=u) for u in uses]


def _normalize_template(template: str) -> str:
    # foo-openrc:openrc:noarch -> foo-openrc
    return template.split(":", 1)[0].replace("${pkgname}", "$pkgname")


def map_subpackage(template: str, descriptor: Descriptor) -> Subpackage:
    """Turn one ``subpackages`` entry into a melange subpackage.

    Unrecognised suffixes get a placeholder pipeline rather than an error.
    """
    normalized = _normalize_template(template)
    subpackage = Subpackage(name=normalized.replace("$pkgname", descriptor.name, 1))

    parts = normalized.split("-")
    category = SPLIT_CATEGORIES.get(parts[1]) if len(parts) == 2 else None
    if category is None:
        logger.info("%s: unrecognised subpackage %s, needs manual completion", descriptor.name, template)
        subpackage.pipeline = [placeholder_step()]
        return subpackage

    subpackage.pipeline = [Pipeline(uses="split/" + category)]
    subpackage.description = f"{descriptor.name} {category}"
    if category == "dev":
        runtime = [descriptor.name]
        for dep in descriptor.depends_dev:
            if dep and not dep.startswith("$") and dep not in runtime:
                runtime.append(dep)
        subpackage.dependencies = Dependencies(runtime=runtime)
    return subpackage


def map_descriptor(descriptor: Descriptor, fetch_steps: Iterable[Pipeline] = ()) -> MelangeConfig:
    """Build the melange document for a descriptor.

    The pipeline is the given fetch steps followed by the build-system steps.
    """
    config = MelangeConfig(generated_from=descriptor.location or descriptor.key)
    config.package = Package(
        name=descriptor.name,
        version=descriptor.version,
        description=descriptor.description,
        target_architecture=list(descriptor.arch),
        copyright=[Copyright(license=descriptor.license)],
    )
    config.pipeline = list(fetch_steps) + builder_pipeline(descriptor.builder_type)
    config.subpackages = [
        map_subpackage(template, descriptor) for template in descriptor.subpackages if template.strip()
    ]
    return config
