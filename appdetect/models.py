"""Data models for project detection results."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Ecosystem(str, Enum):
    """Language / package-manager family of a detected project."""
    NODE = "node"
    PYTHON = "python"
    DOTNET = "dotnet"
    APPHOST = "apphost"


class PackageManager(str, Enum):
    """Tool used to install a project's dependencies."""
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"
    UV = "uv"
    POETRY = "poetry"
    PIPENV = "pipenv"
    PIP = "pip"
    DOTNET = "dotnet"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Project:
    """A directory identified as a buildable/runnable project."""
    dir: Path
    manifest_path: Path  # the file that identified the project
    ecosystem: Ecosystem
    package_manager: PackageManager = PackageManager.UNKNOWN

    @property
    def identity(self) -> tuple[Path, Ecosystem]:
        return (self.dir, self.ecosystem)

    def to_dict(self) -> dict:
        return {
            "dir": str(self.dir),
            "manifest": str(self.manifest_path),
            "ecosystem": self.ecosystem.value,
            "package_manager": self.package_manager.value,
        }


@dataclass(frozen=True)
class ScanWarning:
    """A non-fatal problem met during a scan (e.g. unreadable directory)."""
    path: Path
    message: str


@dataclass
class ScanResult:
    """Projects found under one root, one ordered list per ecosystem."""
    root: Path
    node: list[Project] = field(default_factory=list)
    python: list[Project] = field(default_factory=list)
    dotnet: list[Project] = field(default_factory=list)
    apphost: list[Project] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    cancelled: bool = False

    def by_ecosystem(self, ecosystem: Ecosystem) -> list[Project]:
        """Return the list holding projects of ``ecosystem``."""
        return getattr(self, ecosystem.value)

    def all_projects(self) -> list[Project]:
        projects: list[Project] = []
        for ecosystem in Ecosystem:
            projects.extend(self.by_ecosystem(ecosystem))
        return projects

    def is_empty(self) -> bool:
        return not self.all_projects()

    def to_dict(self) -> dict:
        data: dict = {"root": str(self.root)}
        for ecosystem in Ecosystem:
            data[ecosystem.value] = [p.to_dict() for p in self.by_ecosystem(ecosystem)]
        data["warnings"] = [
            {"path": str(w.path), "message": w.message} for w in self.warnings
        ]
        data["cancelled"] = self.cancelled
        return data
