"""Custom exception hierarchy for appdetect.

All appdetect-specific exceptions derive from AppDetectError. Each
exception carries an optional ``context`` dict with structured metadata
(root path, manifest file, config key, etc.) that the CLI error handler
can render.

Only fatal conditions are raised. Unreadable subdirectories, ambiguous
package managers and paths outside the workspace root are absorbed by the
scanner and never surface here.

Exception hierarchy::

    AppDetectError
    ├── RootNotFoundError
    ├── NotADirectoryRootError
    ├── ManifestError
    ├── ConfigError
    └── ScanCancelledError
"""
from __future__ import annotations

from typing import Optional


class AppDetectError(Exception):
    """Base class for all appdetect exceptions.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured metadata.
    """

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[dict] = None):
        self.context = context or {}
        super().__init__(message)


# ── Scan Preconditions ─────────────────────────────────────────────

class RootNotFoundError(AppDetectError):
    """Raised when the scan root does not exist."""

    def __init__(self, root: str):
        super().__init__(
            f"Scan root '{root}' does not exist",
            context={"root": root},
        )


class NotADirectoryRootError(AppDetectError):
    """Raised when the scan root exists but is not a directory."""

    def __init__(self, root: str):
        super().__init__(
            f"Scan root '{root}' is not a directory",
            context={"root": root},
        )


# ── Workspace / Configuration ──────────────────────────────────────

class ManifestError(AppDetectError):
    """Raised when the workspace marker file cannot be read or parsed."""

    def __init__(self, message: str, file_path: str = ""):
        super().__init__(message, context={"file": file_path})


class ConfigError(AppDetectError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, key: str = "", source: str = ""):
        super().__init__(message, context={"key": key, "source": source})


class ScanCancelledError(AppDetectError):
    """Raised by callers that treat a cancelled scan as a failure."""

    exit_code = 130

    def __init__(self, root: str, found: int = 0):
        super().__init__(
            f"Scan of '{root}' was cancelled",
            context={"root": root, "projects_found": found},
        )
