"""Per-ecosystem project classifiers.

Each classifier looks at a single directory listing and decides whether the
directory is a project root of its ecosystem. Classifiers never recurse;
descending into subdirectories is the walker's job.
"""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from appdetect.detector.boundary import admits_resolved
from appdetect.models import Ecosystem, PackageManager, Project
from appdetect.rules import DetectionRules

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

# Only this many leading bytes of a manifest or entry file are inspected.
MAX_ENTRY_FILE_BYTES = 1024 * 1024

_COREPACK_MANAGERS = {
    "npm": PackageManager.NPM,
    "pnpm": PackageManager.PNPM,
    "yarn": PackageManager.YARN,
    "bun": PackageManager.BUN,
}


@dataclass(frozen=True)
class DirListing:
    """One visited directory and the names of the regular files in it.

    ``root`` is the scan root. When set, files whose real path falls
    outside it are never read.
    """
    path: Path
    files: frozenset[str]
    root: Optional[Path] = None

    def has(self, name: str) -> bool:
        return name in self.files

    def file(self, name: str) -> Path:
        return self.path / name

    def read(self, name: str) -> Optional[str]:
        """Contents of ``name``, or None if it is unreadable or outside the root."""
        path = self.file(name)
        if self.root is not None and not admits_resolved(self.root, path):
            logger.debug("Not reading %s: outside %s", path, self.root)
            return None
        return _read_text(path)


def _read_text(path: Path, limit: int = MAX_ENTRY_FILE_BYTES) -> Optional[str]:
    """Read a small text file, returning None when it cannot be read."""
    try:
        with open(path, "rb") as f:
            data = f.read(limit)
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None
    return data.decode("utf-8", errors="replace")


# ── Node ────────────────────────────────────────────────────────────


def _corepack_manager(listing: DirListing, manifest: str) -> PackageManager:
    """Infer the package manager from the ``packageManager`` field."""
    text = listing.read(manifest)
    if text is None:
        return PackageManager.UNKNOWN
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.debug("Unusable JSON in %s: %s", listing.file(manifest), e)
        return PackageManager.UNKNOWN
    if not isinstance(data, dict):
        return PackageManager.UNKNOWN
    declared = data.get("packageManager")
    if not isinstance(declared, str):
        return PackageManager.UNKNOWN
    name = declared.split("@", 1)[0].strip().lower()
    return _COREPACK_MANAGERS.get(name, PackageManager.UNKNOWN)


def classify_node(listing: DirListing, rules: DetectionRules) -> Optional[Project]:
    """Node project iff ``package.json`` is present."""
    if not listing.has(rules.node_manifest):
        return None
    manifest = listing.file(rules.node_manifest)
    manager = PackageManager.UNKNOWN
    for lockfile, candidate in rules.node_lockfiles:
        if listing.has(lockfile):
            manager = candidate
            break
    else:
        manager = _corepack_manager(listing, rules.node_manifest)
    return Project(
        dir=listing.path,
        manifest_path=manifest,
        ecosystem=Ecosystem.NODE,
        package_manager=manager,
    )


# ── Python ──────────────────────────────────────────────────────────


def _pyproject_manager(listing: DirListing, default: PackageManager) -> PackageManager:
    """Poetry projects declare a [tool.poetry] table; anything else keeps ``default``."""
    text = listing.read("pyproject.toml")
    if text is None:
        return default
    try:
        data = tomllib.loads(text)
    except (tomllib.TOMLDecodeError, RecursionError) as e:
        logger.debug("Unusable TOML in %s: %s", listing.file("pyproject.toml"), e)
        return default
    tool = data.get("tool")
    if isinstance(tool, dict) and "poetry" in tool:
        return PackageManager.POETRY
    return default


def classify_python(listing: DirListing, rules: DetectionRules) -> Optional[Project]:
    """Python project iff any requirements, build-system or lock file is present.

    The most specific evidence wins: resolver lockfiles, then build-system
    files, then a plain requirements file.
    """
    for name, manager in rules.python_evidence:
        if not listing.has(name):
            continue
        path = listing.file(name)
        if name == "pyproject.toml":
            manager = _pyproject_manager(listing, manager)
        return Project(
            dir=listing.path,
            manifest_path=path,
            ecosystem=Ecosystem.PYTHON,
            package_manager=manager,
        )
    return None


# ── .NET ────────────────────────────────────────────────────────────


def _project_files(listing: DirListing, rules: DetectionRules) -> list[str]:
    return sorted(
        name for name in listing.files
        if name.lower().endswith(rules.dotnet_extensions)
    )


def classify_dotnet(listing: DirListing, rules: DetectionRules) -> Optional[Project]:
    """.NET project iff a project file sits directly in the directory."""
    candidates = _project_files(listing, rules)
    if not candidates:
        return None
    return Project(
        dir=listing.path,
        manifest_path=listing.file(candidates[0]),
        ecosystem=Ecosystem.DOTNET,
        package_manager=PackageManager.DOTNET,
    )


def _has_apphost_evidence(listing: DirListing, rules: DetectionRules) -> bool:
    for entry in rules.apphost_entry_files:
        if not listing.has(entry):
            continue
        text = listing.read(entry)
        if text and any(marker in text for marker in rules.apphost_markers):
            return True
    return False


def classify_apphost(listing: DirListing, rules: DetectionRules) -> Optional[Project]:
    """Orchestrator project: a .NET project whose entry point builds a distributed app.

    Detection is textual. A renamed API yields a plain .NET project instead.
    """
    dotnet = classify_dotnet(listing, rules)
    if dotnet is None:
        return None
    if not _has_apphost_evidence(listing, rules):
        return None
    return Project(
        dir=dotnet.dir,
        manifest_path=dotnet.manifest_path,
        ecosystem=Ecosystem.APPHOST,
        package_manager=PackageManager.DOTNET,
    )


Classifier = Callable[[DirListing, DetectionRules], Optional[Project]]

CLASSIFIERS: dict[Ecosystem, Classifier] = {
    Ecosystem.NODE: classify_node,
    Ecosystem.PYTHON: classify_python,
    Ecosystem.APPHOST: classify_apphost,
    Ecosystem.DOTNET: classify_dotnet,
}


def classify_directory(listing: DirListing, rules: DetectionRules) -> list[Project]:
    """Run every classifier against one directory.

    A directory may be reported once per ecosystem. An AppHost hit replaces
    the plain .NET hit for the same directory.
    """
    hits: list[Project] = []
    for ecosystem, classifier in CLASSIFIERS.items():
        if ecosystem is Ecosystem.DOTNET and any(
            p.ecosystem is Ecosystem.APPHOST for p in hits
        ):
            continue
        project = classifier(listing, rules)
        if project is not None:
            hits.append(project)
    return hits
