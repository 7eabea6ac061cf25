"""Core type definitions"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class EnvKind(Enum):
    VENV = "venv"
    CONDA = "conda"


@dataclass(frozen=True)
class Requirement:
    """Pinned manifest entry"""
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}=={self.version}"


@dataclass(frozen=True)
class OutdatedPackage:
    """Installed package that lags behind the latest release"""
    name: str
    version: str
    latest_version: str


@dataclass(frozen=True)
class Toolchain:
    """Resolved host binaries"""
    python: Path
    python_version: str
    pip: List[str]
    conda: Optional[Path] = None

    @property
    def python_series(self) -> str:
        """Major.minor interpreter version, e.g. ``3.12``."""
        return ".".join(self.python_version.split(".")[:2])


@dataclass(frozen=True)
class EnvLayout:
    """Binary locations inside an environment root"""
    root: Path
    bin_dir: Path
    python: Path
    pip: Path


@dataclass(frozen=True)
class Environment:
    """Created Python environment"""
    id: str
    kind: EnvKind
    layout: EnvLayout
    toolchain: Toolchain
    created_at: datetime

    @property
    def root(self) -> Path:
        return self.layout.root

    @property
    def python_bin(self) -> Path:
        return self.layout.python

    @property
    def pip_bin(self) -> Path:
        return self.layout.pip

    @property
    def bin_dir(self) -> Path:
        return self.layout.bin_dir


@dataclass(frozen=True)
class Activation:
    """Process environment for commands run inside an activated environment.

    Applied per subprocess; the server process's own ``os.environ`` and
    working directory are left untouched.
    """
    env_vars: Dict[str, str]
    unset_vars: Tuple[str, ...] = ()
    cwd: Optional[Path] = None


@dataclass(frozen=True)
class SetupOptions:
    """Inputs of a full setup run"""
    root: Path
    requirements: Path
    kind: EnvKind = EnvKind.VENV
    report_path: Path = Path("outdated_dependencies.json")
    python_version: Optional[str] = None
    upgrade_pip: bool = False
    manifest_only: bool = True


@dataclass
class SetupResult:
    """Outcome of a full setup run"""
    environment: Environment
    installed: List[Requirement] = field(default_factory=list)
    outdated: List[OutdatedPackage] = field(default_factory=list)
    report_path: Optional[Path] = None

    def to_dict(self) -> dict:
        return {
            "id": self.environment.id,
            "kind": self.environment.kind.value,
            "root": str(self.environment.root),
            "python": str(self.environment.python_bin),
            "created_at": self.environment.created_at.isoformat(),
            "installed": [str(r) for r in self.installed],
            "outdated": {
                p.name: {"current": p.version, "latest": p.latest_version}
                for p in self.outdated
            },
            "report": str(self.report_path) if self.report_path else None,
        }
