"""Workspace boundary checks.

Every directory the walker enters and every manifest the scanner reports
must lie at or below the scan root.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Union

PathLike = Union[str, os.PathLike]


def admits(root: PathLike, candidate: PathLike) -> bool:
    """Return True if ``candidate`` is ``root`` or lies below it.

    Purely lexical: no filesystem access. Paths that cannot be related to
    ``root`` (e.g. different drives on Windows) are rejected.
    """
    try:
        rel = os.path.relpath(os.fspath(candidate), os.fspath(root))
    except ValueError:
        return False
    parts = Path(rel).parts
    return not parts or parts[0] != os.pardir


def admits_resolved(root: PathLike, candidate: PathLike) -> bool:
    """Like :func:`admits`, but follows symbolic links in ``candidate`` first.

    ``root`` is expected to be resolved already. A link that points outside
    the root is rejected even though its own location is inside.
    """
    try:
        real = os.path.realpath(os.fspath(candidate))
    except (OSError, ValueError):
        return False
    return admits(root, candidate) and admits(root, real)
