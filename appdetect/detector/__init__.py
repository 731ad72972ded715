"""Boundary-safe project detection."""

from appdetect.detector.aggregator import ResultAggregator
from appdetect.detector.boundary import admits, admits_resolved
from appdetect.detector.classifiers import DirListing, classify_directory
from appdetect.detector.scanner import (
    find_apphost,
    find_dotnet_projects,
    find_node_projects,
    find_python_projects,
    scan_workspace,
)
from appdetect.detector.walker import TreeWalker, VisitedSet

__all__ = [
    "DirListing",
    "ResultAggregator",
    "TreeWalker",
    "VisitedSet",
    "admits",
    "admits_resolved",
    "classify_directory",
    "find_apphost",
    "find_dotnet_projects",
    "find_node_projects",
    "find_python_projects",
    "scan_workspace",
]
