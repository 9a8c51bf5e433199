"""Data models for generated melange configuration documents.

Each dataclass knows how to render itself as the plain mapping melange reads;
empty optional fields are left out of the rendered document.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Markers left in generated output wherever a human has to step in.
MANUAL_FIX = "FIXME"
SOURCE_URL_NOT_VALID = "FIXME - SOURCE URL NOT VALID"
CHECKSUM_MISMATCH = "SHA512 DOES NOT MATCH SOURCE - VALIDATE MANUALLY"
COPYRIGHT_ATTESTATION = "TODO"

VERSION_PLACEHOLDER = "${{package.version}}"


@dataclass
class Copyright:
    license: str = ""
    paths: List[str] = field(default_factory=lambda: ["*"])
    attestation: str = COPYRIGHT_ATTESTATION

    def to_dict(self) -> Dict[str, Any]:
        return {"paths": list(self.paths), "attestation": self.attestation, "license": self.license}


@dataclass
class Package:
    name: str = ""
    version: str = ""
    epoch: int = 0
    description: str = ""
    target_architecture: List[str] = field(default_factory=list)
    copyright: List[Copyright] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "version": self.version, "epoch": self.epoch}
        if self.description:
            out["description"] = self.description
        if self.target_architecture:
            out["target-architecture"] = list(self.target_architecture)
        if self.copyright:
            out["copyright"] = [c.to_dict() for c in self.copyright]
        return out


@dataclass
class Pipeline:
    """One pipeline step: a named step template or an inline script."""
    uses: Optional[str] = None
    with_: Dict[str, str] = field(default_factory=dict)
    runs: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.uses:
            out["uses"] = self.uses
        if self.with_:
            out["with"] = dict(self.with_)
        if self.runs:
            out["runs"] = self.runs
        return out


def placeholder_step() -> Pipeline:
    """A step that makes it obvious the config needs finishing by hand."""
    return Pipeline(runs=MANUAL_FIX)


@dataclass
class Dependencies:
    runtime: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"runtime": list(self.runtime)} if self.runtime else {}


@dataclass
class Subpackage:
    name: str
    description: str = ""
    dependencies: Dependencies = field(default_factory=Dependencies)
    pipeline: List[Pipeline] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.pipeline:
            out["pipeline"] = [p.to_dict() for p in self.pipeline]
        deps = self.dependencies.to_dict()
        if deps:
            out["dependencies"] = deps
        if self.description:
            out["description"] = self.description
        return out


@dataclass
class Environment:
    repositories: List[str] = field(default_factory=list)
    keyring: List[str] = field(default_factory=list)
    packages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        contents: Dict[str, Any] = {}
        if self.repositories:
            contents["repositories"] = list(self.repositories)
        if self.keyring:
            contents["keyring"] = list(self.keyring)
        if self.packages:
            contents["packages"] = list(self.packages)
        return {"contents": contents} if contents else {}


@dataclass
class MelangeConfig:
    """A complete generated melange document for one package."""
    package: Package = field(default_factory=Package)
    environment: Environment = field(default_factory=Environment)
    pipeline: List[Pipeline] = field(default_factory=list)
    subpackages: List[Subpackage] = field(default_factory=list)
    generated_from: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"package": self.package.to_dict()}
        env = self.environment.to_dict()
        if env:
            out["environment"] = env
        if self.pipeline:
            out["pipeline"] = [p.to_dict() for p in self.pipeline]
        if self.subpackages:
            out["subpackages"] = [s.to_dict() for s in self.subpackages]
        return out

    def needs_manual_fix(self) -> bool:
        """True when any step or subpackage carries a manual-fix marker."""
        markers = {MANUAL_FIX, SOURCE_URL_NOT_VALID, CHECKSUM_MISMATCH}
        steps = list(self.pipeline)
        for sub in self.subpackages:
            steps.extend(sub.pipeline)
        for step in steps:
            if step.runs in markers or step.uses in markers:
                return True
            if any(v in markers for v in step.with_.values()):
                return True
        return False
