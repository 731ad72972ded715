"""Collects classifier hits into de-duplicated, ordered lists."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterable

from appdetect.models import Ecosystem, Project, ScanResult, ScanWarning


class ResultAggregator:
    """Keeps the first project seen for each (dir, ecosystem) pair.

    Safe to feed from several walker threads at once.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seen: set[tuple[Path, Ecosystem]] = set()
        self._projects: dict[Ecosystem, list[Project]] = {eco: [] for eco in Ecosystem}

    def add(self, project: Project) -> bool:
        """Record ``project``. Returns False if its identity was already seen."""
        with self._lock:
            if project.identity in self._seen:
                return False
            self._seen.add(project.identity)
            self._projects[project.ecosystem].append(project)
            return True

    def result(
        self,
        root: Path,
        warnings: Iterable[ScanWarning] = (),
        cancelled: bool = False,
        sort: bool = False,
    ) -> ScanResult:
        """Build the :class:`ScanResult`. ``sort`` orders each list by path components."""
        with self._lock:
            lists = {eco: list(items) for eco, items in self._projects.items()}
        if sort:
            for items in lists.values():
                items.sort(key=lambda p: p.dir.parts)
        return ScanResult(
            root=root,
            node=lists[Ecosystem.NODE],
            python=lists[Ecosystem.PYTHON],
            dotnet=lists[Ecosystem.DOTNET],
            apphost=lists[Ecosystem.APPHOST],
            warnings=list(warnings),
            cancelled=cancelled,
        )
