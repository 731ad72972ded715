"""Detection rules: which directories to skip and which evidence wins.

Rules are immutable and passed explicitly to the walker and classifiers.
Use :meth:`DetectionRules.with_overrides` to derive a variant (the config
layer does this for user-specified skip lists).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from appdetect.models import PackageManager

# Dependency caches, VCS metadata and build output. Never descended into.
SKIP_DIRS: frozenset[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    ".pnpm-store",
    ".yarn",
    "bower_components",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
    ".nox",
    ".venv",
    "venv",
    ".eggs",
    "site-packages",
    "bin",
    "obj",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".output",
    ".svelte-kit",
    ".angular",
    "coverage",
    ".idea",
    ".vs",
    ".vscode",
    ".azure",
})

SKIP_SUFFIXES: tuple[str, ...] = (".egg-info",)

NODE_MANIFEST = "package.json"

# First match wins.
NODE_LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("bun.lockb", PackageManager.BUN),
    ("bun.lock", PackageManager.BUN),
    ("package-lock.json", PackageManager.NPM),
    ("npm-shrinkwrap.json", PackageManager.NPM),
)

# Resolver lockfiles, then build-system files, then plain requirements.
# pyproject.toml maps to uv unless it carries a [tool.poetry] table.
PYTHON_EVIDENCE: tuple[tuple[str, PackageManager], ...] = (
    ("uv.lock", PackageManager.UV),
    ("poetry.lock", PackageManager.POETRY),
    ("Pipfile.lock", PackageManager.PIPENV),
    ("pyproject.toml", PackageManager.UV),
    ("Pipfile", PackageManager.PIPENV),
    ("requirements.txt", PackageManager.PIP),
)

DOTNET_EXTENSIONS: tuple[str, ...] = (".csproj", ".fsproj", ".vbproj")

APPHOST_ENTRY_FILES: tuple[str, ...] = ("Program.cs", "AppHost.cs")

APPHOST_MARKERS: tuple[str, ...] = (
    "DistributedApplication.CreateBuilder",
    "DistributedApplication",
)


@dataclass(frozen=True)
class DetectionRules:
    """Immutable configuration for one scan."""
    skip_dirs: frozenset[str] = SKIP_DIRS
    skip_suffixes: tuple[str, ...] = SKIP_SUFFIXES
    node_manifest: str = NODE_MANIFEST
    node_lockfiles: tuple[tuple[str, PackageManager], ...] = NODE_LOCKFILES
    python_evidence: tuple[tuple[str, PackageManager], ...] = PYTHON_EVIDENCE
    dotnet_extensions: tuple[str, ...] = DOTNET_EXTENSIONS
    apphost_entry_files: tuple[str, ...] = APPHOST_ENTRY_FILES
    apphost_markers: tuple[str, ...] = APPHOST_MARKERS

    def is_skipped(self, name: str) -> bool:
        """Return True if a directory called ``name`` must not be entered."""
        return name in self.skip_dirs or name.endswith(self.skip_suffixes)

    def with_overrides(
        self,
        extra_skip_dirs: Optional[Iterable[str]] = None,
        include_dirs: Optional[Iterable[str]] = None,
    ) -> DetectionRules:
        """Return a copy with directories added to / removed from the skip list."""
        skip = set(self.skip_dirs)
        if extra_skip_dirs:
            skip.update(d.strip() for d in extra_skip_dirs if d.strip())
        if include_dirs:
            skip.difference_update(d.strip() for d in include_dirs)
        return replace(self, skip_dirs=frozenset(skip))


DEFAULT_RULES = DetectionRules()
