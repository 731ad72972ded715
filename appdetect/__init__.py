"""Project detection for multi-service workspaces."""

from appdetect.detector import scan_workspace
from appdetect.models import Ecosystem, PackageManager, Project, ScanResult, ScanWarning
from appdetect.rules import DEFAULT_RULES, DetectionRules

__version__ = "0.3.0"

__all__ = [
    "DEFAULT_RULES",
    "DetectionRules",
    "Ecosystem",
    "PackageManager",
    "Project",
    "ScanResult",
    "ScanWarning",
    "scan_workspace",
]
