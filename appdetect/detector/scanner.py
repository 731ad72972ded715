"""Workspace scan orchestrator.

Resolves the root once, walks it, classifies every visited directory and
aggregates the hits. Every decision is taken relative to that single root.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from appdetect.detector.aggregator import ResultAggregator
from appdetect.detector.boundary import admits_resolved
from appdetect.detector.classifiers import DirListing, classify_directory
from appdetect.detector.walker import TreeWalker, VisitedSet
from appdetect.errors import NotADirectoryRootError, RootNotFoundError
from appdetect.models import Ecosystem, Project, ScanResult, ScanWarning
from appdetect.rules import DEFAULT_RULES, DetectionRules

logger = logging.getLogger(__name__)

PathArg = Union[str, Path]


def _resolve_root(root: PathArg) -> Path:
    path = Path(root).expanduser()
    if not path.exists():
        raise RootNotFoundError(str(path))
    path = path.resolve()
    if not path.is_dir():
        raise NotADirectoryRootError(str(path))
    return path


class _Scan:
    """State for one scan invocation."""

    def __init__(self, root: Path, rules: DetectionRules, cancel: Optional[threading.Event]):
        self.root = root
        self.rules = rules
        self.aggregator = ResultAggregator()
        self.warnings: list[ScanWarning] = []
        self._warnings_lock = threading.Lock()
        self.walker = TreeWalker(rules, on_warning=self._record_warning, cancel=cancel)

    def _record_warning(self, warning: ScanWarning) -> None:
        with self._warnings_lock:
            self.warnings.append(warning)

    def classify(self, listing: DirListing) -> None:
        for project in classify_directory(listing, self.rules):
            if not admits_resolved(self.root, project.manifest_path):
                logger.debug("Ignoring %s: manifest outside %s", project.manifest_path, self.root)
                continue
            self.aggregator.add(project)

    def walk(self, start: Optional[Path] = None, visited: Optional[VisitedSet] = None) -> None:
        for listing in self.walker.scan(self.root, start=start, visited=visited):
            self.classify(listing)

    def run_parallel(self, workers: int) -> None:
        if self.walker.is_cancelled():
            return
        visited = VisitedSet()
        visited.claim(self.root)
        listed = self.walker.visit(self.root, self.root)
        if listed is None:
            return
        listing, children = listed
        self.classify(listing)
        # Top-level aliases of the root or of an earlier sibling get no shard.
        shards = [child for child in children if visited.claim(child)]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="appdetect-scan") as pool:
            futures = [pool.submit(self.walk, child, visited) for child in shards]
            for future in futures:
                future.result()

    def result(self, sort: bool) -> ScanResult:
        with self._warnings_lock:
            warnings = list(self.warnings)
        return self.aggregator.result(
            self.root,
            warnings=warnings,
            cancelled=self.walker.cancelled,
            sort=sort,
        )


def scan_workspace(
    root: PathArg,
    rules: Optional[DetectionRules] = None,
    *,
    cancel: Optional[threading.Event] = None,
    workers: int = 1,
) -> ScanResult:
    """Detect every project at or below ``root``.

    Args:
        root: Directory anchoring the scan (usually the workspace root).
        rules: Skip lists and precedence tables; defaults to DEFAULT_RULES.
        cancel: Event that, once set, stops the walk. The result then has
            ``cancelled=True`` and holds only what was found so far.
        workers: Number of threads walking top-level subtrees. With more
            than one worker the lists are sorted by path.

    Raises:
        RootNotFoundError: ``root`` does not exist.
        NotADirectoryRootError: ``root`` is not a directory.
    """
    resolved = _resolve_root(root)
    scan = _Scan(resolved, rules or DEFAULT_RULES, cancel)
    logger.info("Scanning %s for projects", resolved)

    if workers > 1:
        scan.run_parallel(workers)
    else:
        scan.walk()

    result = scan.result(sort=workers > 1)
    logger.info(
        "Found %d projects under %s (%d warnings%s)",
        len(result.all_projects()),
        resolved,
        len(result.warnings),
        ", cancelled" if result.cancelled else "",
    )
    return result


def find_node_projects(root: PathArg, rules: Optional[DetectionRules] = None) -> list[Project]:
    """Node.js projects under ``root``."""
    return scan_workspace(root, rules).node


def find_python_projects(root: PathArg, rules: Optional[DetectionRules] = None) -> list[Project]:
    """Python projects under ``root``."""
    return scan_workspace(root, rules).python


def find_dotnet_projects(root: PathArg, rules: Optional[DetectionRules] = None) -> list[Project]:
    """Plain .NET projects under ``root`` (AppHost projects excluded)."""
    return scan_workspace(root, rules).dotnet


def find_apphost(root: PathArg, rules: Optional[DetectionRules] = None) -> Optional[Project]:
    """The first AppHost project under ``root``, or None."""
    apphosts = scan_workspace(root, rules).by_ecosystem(Ecosystem.APPHOST)
    return apphosts[0] if apphosts else None
