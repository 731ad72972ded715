#!/usr/bin/env python3
"""
appdetect: discover the Node.js, Python, .NET and AppHost projects in a
multi-service workspace.
"""

import threading
from pathlib import Path
from typing import List, Optional

import typer

from appdetect import ui
from appdetect.config import get_config_service
from appdetect.error_handler import handle_errors
from appdetect.errors import ScanCancelledError
from appdetect.models import Ecosystem

app = typer.Typer(
    name="appdetect",
    help="Detect buildable projects inside a workspace.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main_callback(
    plain: bool = typer.Option(False, "--plain", help="Plain output without colors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
):
    """Detect buildable projects inside a workspace."""
    if plain or get_config_service().get("ui.plain_output", False) is True:
        ui.set_plain_mode(True)
    ui.setup_logging(verbose)


def _parse_ecosystems(values: Optional[list[str]]) -> list[Ecosystem]:
    if not values:
        return list(Ecosystem)
    selected: list[Ecosystem] = []
    for value in values:
        try:
            selected.append(Ecosystem(value.lower()))
        except ValueError:
            choices = ", ".join(e.value for e in Ecosystem)
            raise typer.BadParameter(f"unknown ecosystem '{value}' (choose from {choices})")
    return selected


@app.command()
@handle_errors
def detect(
    path: str = typer.Argument(".", help="Directory to start from"),
    ecosystem: Optional[List[str]] = typer.Option(
        None, "--ecosystem", "-e",
        help="Only show these ecosystems (node, python, dotnet, apphost). Repeatable.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Scan threads."),
    no_resolve: bool = typer.Option(
        False, "--no-resolve",
        help="Scan PATH itself instead of the workspace root above it.",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.0, help="Give up after this many seconds.",
    ),
):
    """[bold cyan]Detect[/bold cyan] projects under the workspace root."""
    from appdetect.detector import scan_workspace
    from appdetect.workspace import WorkspaceRoot, resolve_workspace_root

    selected = _parse_ecosystems(ecosystem)
    start = Path(path)

    if no_resolve:
        workspace = WorkspaceRoot(path=start.expanduser().resolve())
    else:
        workspace = resolve_workspace_root(start, get_config_service().marker())
    config = get_config_service(workspace.path)

    cancel = threading.Event()
    timer = None
    if timeout is not None:
        timer = threading.Timer(timeout, cancel.set)
        timer.daemon = True
        timer.start()
    try:
        if as_json:
            result = scan_workspace(
                workspace.path, config.rules(), cancel=cancel,
                workers=workers or config.workers(),
            )
        else:
            with ui.console.status("[bold cyan]Scanning workspace...[/bold cyan]"):
                result = scan_workspace(
                    workspace.path, config.rules(), cancel=cancel,
                    workers=workers or config.workers(),
                )
    finally:
        if timer is not None:
            timer.cancel()

    if result.cancelled:
        raise ScanCancelledError(str(result.root), found=len(result.all_projects()))

    if as_json:
        data = result.to_dict()
        for eco in Ecosystem:
            if eco not in selected:
                data.pop(eco.value)
        data["fallback_root"] = workspace.fallback
        ui.print_json_output(data)
        return

    ui.show_scan_result(result, selected)


@app.command()
@handle_errors
def root(
    path: str = typer.Argument(".", help="Directory to start from"),
):
    """Show the workspace root that detection would use."""
    from appdetect.workspace import resolve_workspace_root

    workspace = resolve_workspace_root(Path(path), get_config_service().marker())
    ui.console.print(str(workspace.path), highlight=False, soft_wrap=True)
    if workspace.marker is not None:
        ui.console.print(f"[muted]marker: {workspace.marker}[/muted]")
    else:
        ui.console.print("[warning]no workspace marker found (fallback)[/warning]")


@app.command()
@handle_errors
def services(
    path: str = typer.Argument(".", help="Directory to start from"),
):
    """List services declared in the workspace manifest and what was detected for each."""
    from rich.table import Table

    from appdetect.workspace import detect_workspace, load_workspace_manifest

    marker = get_config_service().marker()
    workspace, result = detect_workspace(Path(path), marker)
    if workspace.marker is None:
        ui.console.print(f"[warning]No {marker} found above {workspace.path}.[/warning]")
        raise typer.Exit(1)

    manifest = load_workspace_manifest(workspace.marker)
    by_dir: dict[Path, list[str]] = {}
    for project in result.all_projects():
        by_dir.setdefault(project.dir, []).append(
            f"{project.ecosystem.value} ({project.package_manager.value})"
        )

    table = Table(title=manifest.name or str(workspace.path), show_header=True, expand=False)
    table.add_column("Service", style="cyan")
    table.add_column("Project")
    table.add_column("Language")
    table.add_column("Detected", style="bold")
    for service in manifest.services:
        if service.project is None:
            detected = "[muted]no project path[/muted]"
        elif service.outside_root:
            detected = "[error]outside workspace[/error]"
        else:
            detected = ", ".join(by_dir.get(service.project, [])) or "[muted]nothing[/muted]"
        table.add_row(
            service.name,
            ui.relative_path(service.project, workspace.path) if service.project else "",
            service.language,
            detected,
        )
    ui.console.print(table)


@app.command("config")
@handle_errors
def show_config(
    path: str = typer.Argument(".", help="Workspace directory"),
):
    """Print the resolved configuration as JSON."""
    from appdetect.workspace import resolve_workspace_root

    workspace = resolve_workspace_root(Path(path), get_config_service().marker())
    ui.print_json_output(get_config_service(workspace.path).show())


if __name__ == "__main__":
    app()
