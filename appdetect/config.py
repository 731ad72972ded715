"""Layered configuration service for appdetect.

Priority (highest to lowest):
1. Environment variables (APPDETECT_*)
2. Project config (.appdetect.toml in the workspace root)
3. Global config (~/.config/appdetect/config.toml)
4. Built-in defaults
"""
from __future__ import annotations

import copy
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from appdetect.errors import ConfigError
from appdetect.rules import DEFAULT_RULES, DetectionRules

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".appdetect.toml"

# Default configuration values
DEFAULTS: dict[str, Any] = {
    "workspace": {
        "marker": "azure.yaml",
    },
    "scan": {
        "workers": 1,
        "skip_dirs": [],
        "include_dirs": [],
    },
    "ui": {
        "plain_output": False,
    },
}

# Mapping of env vars to config paths
ENV_VAR_MAP = {
    "APPDETECT_MARKER": "workspace.marker",
    "APPDETECT_WORKERS": "scan.workers",
    "APPDETECT_SKIP_DIRS": "scan.skip_dirs",
    "APPDETECT_INCLUDE_DIRS": "scan.include_dirs",
    "APPDETECT_PLAIN": "ui.plain_output",
}

_LIST_KEYS = {"scan.skip_dirs", "scan.include_dirs"}


def _global_config_dir() -> Path:
    """Return the global config directory: ~/.config/appdetect/."""
    return Path.home() / ".config" / "appdetect"


def _global_config_path() -> Path:
    return _global_config_dir() / "config.toml"


def _read_toml(path: Path) -> dict:
    """Read a TOML file, returning empty dict if missing or unreadable."""
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_nested(data: dict, dotted_key: str, default: Any = None) -> Any:
    """Get a value from a nested dict using dotted key notation."""
    current = data
    for key in dotted_key.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    """Set a value in a nested dict using dotted key notation."""
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _env_value(config_path: str, raw: str) -> Any:
    """Convert an environment string to the type its config key expects."""
    if config_path in _LIST_KEYS:
        return [part.strip() for part in raw.split(",") if part.strip()]
    if raw.lower() in ("true", "1", "yes") and config_path == "ui.plain_output":
        return True
    if raw.lower() in ("false", "0", "no") and config_path == "ui.plain_output":
        return False
    return raw


@dataclass
class ResolvedConfig:
    """Fully resolved configuration after merging all layers."""
    data: dict = field(default_factory=dict)
    global_config_path: Optional[Path] = None
    project_config_path: Optional[Path] = None

    def get(self, dotted_key: str, default: Any = None) -> Any:
        return _get_nested(self.data, dotted_key, default)


class ConfigService:
    """Layered configuration service.

    Args:
        workspace_root: Directory searched for the project config file.
            Defaults to the current directory.
    """

    def __init__(self, workspace_root: Optional[Path] = None):
        self.workspace_root = Path(workspace_root) if workspace_root else Path.cwd()
        self._resolved: Optional[ResolvedConfig] = None

    def project_config_path(self) -> Path:
        return self.workspace_root / PROJECT_CONFIG_NAME

    def resolve(self, force: bool = False) -> ResolvedConfig:
        """Resolve the full config from all layers."""
        if self._resolved is not None and not force:
            return self._resolved

        merged = copy.deepcopy(DEFAULTS)

        global_path = _global_config_path()
        global_data = _read_toml(global_path)
        if global_data:
            merged = _deep_merge(merged, global_data)
            logger.debug("Loaded global config from %s", global_path)

        project_path = self.project_config_path()
        project_data = _read_toml(project_path)
        if project_data:
            merged = _deep_merge(merged, project_data)
            logger.debug("Loaded project config from %s", project_path)

        for env_var, config_path in ENV_VAR_MAP.items():
            env_value = os.environ.get(env_var)
            if env_value is not None:
                _set_nested(merged, config_path, _env_value(config_path, env_value))

        self._resolved = ResolvedConfig(
            data=merged,
            global_config_path=global_path if global_path.is_file() else None,
            project_config_path=project_path if project_path.is_file() else None,
        )
        return self._resolved

    def get(self, dotted_key: str, default: Any = None) -> Any:
        return self.resolve().get(dotted_key, default)

    def marker(self) -> str:
        marker = self.get("workspace.marker", "azure.yaml")
        if not isinstance(marker, str) or not marker:
            raise ConfigError("workspace.marker must be a non-empty string", key="workspace.marker")
        return marker

    def workers(self) -> int:
        """Number of scan threads, at least 1."""
        value = self.get("scan.workers", 1)
        try:
            workers = int(value)
        except (TypeError, ValueError):
            raise ConfigError(
                f"scan.workers must be an integer, got {value!r}",
                key="scan.workers",
            ) from None
        if workers < 1:
            raise ConfigError(f"scan.workers must be at least 1, got {workers}", key="scan.workers")
        return workers

    def _string_list(self, dotted_key: str) -> list[str]:
        value = self.get(dotted_key, [])
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"{dotted_key} must be a list of strings", key=dotted_key)
        return value

    def rules(self) -> DetectionRules:
        """Build the detection rules from the resolved config."""
        skip = self._string_list("scan.skip_dirs")
        include = self._string_list("scan.include_dirs")
        if not skip and not include:
            return DEFAULT_RULES
        return DEFAULT_RULES.with_overrides(extra_skip_dirs=skip, include_dirs=include)

    def show(self) -> dict:
        """Return the resolved config and where it came from."""
        resolved = self.resolve(force=True)
        return {
            "resolved": resolved.data,
            "sources": {
                "global_config": str(resolved.global_config_path) if resolved.global_config_path else None,
                "project_config": str(resolved.project_config_path) if resolved.project_config_path else None,
            },
        }


# Module-level singleton
_config_service: Optional[ConfigService] = None


def get_config_service(workspace_root: Optional[Path] = None) -> ConfigService:
    """Get the shared ConfigService, recreating it when the workspace root changes."""
    global _config_service
    root = Path(workspace_root) if workspace_root else Path.cwd()
    if _config_service is None or _config_service.workspace_root != root:
        _config_service = ConfigService(root)
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (useful for testing)."""
    global _config_service
    _config_service = None
