"""Depth-first directory walker bounded by a workspace root."""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Iterator, Optional

from appdetect.detector.boundary import admits_resolved
from appdetect.detector.classifiers import DirListing
from appdetect.models import ScanWarning
from appdetect.rules import DEFAULT_RULES, DetectionRules

logger = logging.getLogger(__name__)

WarningCallback = Callable[[ScanWarning], None]


class VisitedSet:
    """Real paths of the directories already entered, shared between walks."""

    def __init__(self):
        self._lock = threading.Lock()
        self._paths: set[str] = set()

    def claim(self, directory: Path) -> bool:
        """Mark ``directory`` as entered. Returns False if its real path already was."""
        real = os.path.realpath(directory)
        with self._lock:
            if real in self._paths:
                return False
            self._paths.add(real)
            return True


class TreeWalker:
    """Walks a directory tree in pre-order, never leaving ``root``.

    Excluded directory names are skipped before the boundary check. Child
    directories that resolve outside the root are pruned without a
    warning. Directories that cannot be listed produce a warning and the
    walk continues with their siblings.
    """

    def __init__(
        self,
        rules: DetectionRules = DEFAULT_RULES,
        on_warning: Optional[WarningCallback] = None,
        cancel: Optional[threading.Event] = None,
    ):
        self.rules = rules
        self.on_warning = on_warning
        self.cancel = cancel
        self.cancelled = False

    def is_cancelled(self) -> bool:
        if self.cancel is not None and self.cancel.is_set():
            self.cancelled = True
        return self.cancelled

    def scan(
        self,
        root: Path,
        start: Optional[Path] = None,
        visited: Optional[VisitedSet] = None,
    ) -> Iterator[DirListing]:
        """Yield a :class:`DirListing` for ``start`` (default ``root``) and every admitted descendant.

        ``root`` must be an existing, resolved directory; the caller checks
        this precondition. ``start`` lets a caller walk one subtree while
        keeping the boundary anchored at ``root``. Walks sharing a
        ``visited`` set never enter the same real directory twice; ``start``
        itself is always listed.
        """
        if visited is None:
            visited = VisitedSet()
        first = start if start is not None else root
        visited.claim(first)
        stack: list[Path] = [first]
        while stack:
            if self.is_cancelled():
                logger.debug("Walk of %s cancelled", root)
                return
            current = stack.pop()
            if current is not first and not visited.claim(current):
                continue

            entry = self.visit(root, current)
            if entry is None:
                continue
            listing, children = entry
            yield listing
            # Reverse so the first child in name order is popped first.
            stack.extend(reversed(children))

    def visit(self, root: Path, directory: Path) -> Optional[tuple[DirListing, list[Path]]]:
        """List one directory and return it with its admitted child directories.

        Returns None when the directory cannot be listed.
        """
        listed = self._list(directory)
        if listed is None:
            return None
        files, subdirs = listed
        children: list[Path] = []
        for name in sorted(subdirs):
            if self.rules.is_skipped(name):
                continue
            child = directory / name
            if not admits_resolved(root, child):
                logger.debug("Pruned %s: outside %s", child, root)
                continue
            children.append(child)
        return DirListing(path=directory, files=frozenset(files), root=root), children

    def _list(self, directory: Path) -> Optional[tuple[list[str], list[str]]]:
        """Split a directory's entries into file names and subdirectory names."""
        files: list[str] = []
        subdirs: list[str] = []
        try:
            with os.scandir(directory) as it:
                for entry in it:
                    try:
                        if entry.is_dir():
                            subdirs.append(entry.name)
                        elif entry.is_file():
                            files.append(entry.name)
                    except OSError as e:
                        logger.debug("Cannot stat %s: %s", entry.path, e)
        except OSError as e:
            self._warn(directory, f"cannot list directory: {e.strerror or e}")
            return None
        return files, subdirs

    def _warn(self, path: Path, message: str) -> None:
        logger.warning("Skipping %s: %s", path, message)
        if self.on_warning is not None:
            self.on_warning(ScanWarning(path=path, message=message))
