"""Shared console, theme and display helpers for appdetect."""

import json
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

from appdetect.models import Ecosystem, ScanResult

# ── Output Mode State ──
_plain_mode: bool = False

APPDETECT_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
    "muted": "dim",
})

console = Console(theme=APPDETECT_THEME)

ECOSYSTEM_TITLES = {
    Ecosystem.NODE: "Node.js",
    Ecosystem.PYTHON: "Python",
    Ecosystem.DOTNET: ".NET",
    Ecosystem.APPHOST: ".NET AppHost",
}


def set_plain_mode(enabled: bool = True) -> None:
    """Enable or disable plain text output (no colors, no highlighting)."""
    global _plain_mode, console
    _plain_mode = enabled
    if enabled:
        console = Console(theme=APPDETECT_THEME, no_color=True, highlight=False)
    else:
        console = Console(theme=APPDETECT_THEME)


def setup_logging(verbose: bool = False) -> None:
    """Route the ``appdetect`` loggers to stderr through Rich."""
    logger = logging.getLogger("appdetect")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True, no_color=_plain_mode),
        show_path=verbose,
        markup=False,
    )
    logger.addHandler(handler)


def print_json_output(data: dict | list) -> None:
    """Print data as formatted JSON to stdout."""
    print(json.dumps(data, indent=2, default=str))


def relative_path(path, root) -> str:
    """``path`` relative to ``root`` for display, or absolute if outside it."""
    try:
        rel = path.relative_to(root)
    except ValueError:
        return str(path)
    return str(rel)


def project_table(result: ScanResult, ecosystem: Ecosystem) -> Table:
    """Build a table of the projects found for one ecosystem."""
    table = Table(title=ECOSYSTEM_TITLES[ecosystem], show_header=True, expand=False)
    table.add_column("Directory", style="cyan")
    table.add_column("Manifest")
    table.add_column("Package manager", style="bold")
    for project in result.by_ecosystem(ecosystem):
        table.add_row(
            relative_path(project.dir, result.root),
            project.manifest_path.name,
            project.package_manager.value,
        )
    return table


def show_scan_result(result: ScanResult, ecosystems: list[Ecosystem]) -> None:
    """Render a scan result: one table per non-empty ecosystem, then warnings."""
    console.print(f"[muted]Workspace root:[/muted] {result.root}")
    shown = 0
    for ecosystem in ecosystems:
        if not result.by_ecosystem(ecosystem):
            continue
        console.print(project_table(result, ecosystem))
        shown += 1
    if not shown:
        console.print("[muted]No projects detected.[/muted]")
    for warning in result.warnings:
        console.print(f"[warning]Warning:[/warning] {warning.path}: {warning.message}")
    if result.cancelled:
        console.print("[warning]Scan cancelled; results are incomplete.[/warning]")
