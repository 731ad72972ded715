"""Workspace root resolution and the ``azure.yaml`` workspace manifest.

The workspace root is the directory holding the marker file. It is found
once, by walking upward from the starting directory, and then handed to
the scanner as the only boundary for detection.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from appdetect.detector import admits_resolved, scan_workspace
from appdetect.errors import ManifestError
from appdetect.models import ScanResult

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "azure.yaml"

PathArg = Union[str, Path]


@dataclass
class WorkspaceRoot:
    """Resolved workspace root."""
    path: Path
    marker: Optional[Path] = None  # None when no marker file was found
    fallback: bool = False


@dataclass
class ServiceEntry:
    """A service declared in the workspace manifest."""
    name: str
    project: Optional[Path] = None  # resolved against the manifest directory
    language: str = ""
    host: str = ""
    outside_root: bool = False


@dataclass
class WorkspaceManifest:
    """The parts of ``azure.yaml`` detection cares about."""
    path: Path
    name: str = ""
    services: list[ServiceEntry] = field(default_factory=list)


def find_workspace_marker(start: PathArg, marker: str = DEFAULT_MARKER) -> Optional[Path]:
    """Walk upward from ``start`` and return the first ``marker`` file found."""
    current = Path(start).expanduser().resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / marker
        if candidate.is_file():
            logger.debug("Found workspace marker %s", candidate)
            return candidate
    return None


def resolve_workspace_root(start: PathArg, marker: str = DEFAULT_MARKER) -> WorkspaceRoot:
    """Return the directory containing ``marker``, or ``start`` itself as a fallback."""
    found = find_workspace_marker(start, marker)
    if found is not None:
        return WorkspaceRoot(path=found.parent, marker=found)
    path = Path(start).expanduser().resolve()
    logger.warning("No %s found above %s; using it as the workspace root", marker, path)
    return WorkspaceRoot(path=path, fallback=True)


def load_workspace_manifest(path: PathArg) -> WorkspaceManifest:
    """Parse the workspace manifest at ``path``.

    Raises:
        ManifestError: the file cannot be read, is not valid YAML, or is
            not a mapping.
    """
    manifest_path = Path(path).resolve()
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read {manifest_path}: {e}", str(manifest_path)) from e
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {manifest_path}: {e}", str(manifest_path)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError(
            f"{manifest_path} must contain a mapping at the top level",
            str(manifest_path),
        )

    root = manifest_path.parent
    services: list[ServiceEntry] = []
    raw_services = data.get("services") or {}
    if not isinstance(raw_services, dict):
        raise ManifestError(f"'services' in {manifest_path} must be a mapping", str(manifest_path))

    for name, raw in raw_services.items():
        raw = raw if isinstance(raw, dict) else {}
        entry = ServiceEntry(
            name=str(name),
            language=str(raw.get("language", "") or ""),
            host=str(raw.get("host", "") or ""),
        )
        project = raw.get("project")
        if isinstance(project, str) and project:
            entry.project = (root / project).resolve()
            entry.outside_root = not admits_resolved(root, entry.project)
            if entry.outside_root:
                logger.warning(
                    "Service '%s' points outside the workspace: %s", name, entry.project
                )
        services.append(entry)

    return WorkspaceManifest(path=manifest_path, name=str(data.get("name", "") or ""), services=services)


def detect_workspace(
    start: PathArg,
    marker: str = DEFAULT_MARKER,
    *,
    cancel: Optional[threading.Event] = None,
    workers: Optional[int] = None,
) -> tuple[WorkspaceRoot, ScanResult]:
    """Resolve the workspace root from ``start`` and scan it.

    Detection rules and the worker count come from the layered config
    rooted at the resolved workspace.
    """
    from appdetect.config import get_config_service

    workspace = resolve_workspace_root(start, marker)
    config = get_config_service(workspace.path)
    result = scan_workspace(
        workspace.path,
        config.rules(),
        cancel=cancel,
        workers=workers if workers is not None else config.workers(),
    )
    return workspace, result
