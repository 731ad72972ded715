"""Unified CLI error handler for appdetect commands."""

from __future__ import annotations

import functools
import logging
import os
import traceback

import typer

from appdetect import ui
from appdetect.errors import (
    AppDetectError,
    ConfigError,
    ManifestError,
    NotADirectoryRootError,
    RootNotFoundError,
)

logger = logging.getLogger("appdetect.error_handler")


def _debug_mode() -> bool:
    """Check if debug output is enabled via APPDETECT_DEBUG env var."""
    return os.environ.get("APPDETECT_DEBUG", "").lower() in ("1", "true", "yes")


def _render_error(e: AppDetectError) -> None:
    """Render an AppDetectError with Rich formatting and context."""
    console = ui.console
    console.print(f"\n[bold red]Error:[/bold red] {e}")

    if e.context and _debug_mode():
        context_parts = [
            f"  [dim]{key}:[/dim] {value}" for key, value in e.context.items() if value
        ]
        if context_parts:
            console.print("[dim]Context:[/dim]")
            for part in context_parts:
                console.print(part)

    if isinstance(e, (RootNotFoundError, NotADirectoryRootError)):
        console.print("[dim]Pass an existing directory, or run from inside your workspace.[/dim]")
    elif isinstance(e, ManifestError):
        console.print("[dim]Check that azure.yaml is valid YAML with a 'services' mapping.[/dim]")
    elif isinstance(e, ConfigError):
        console.print("[dim]Run 'appdetect config' to see the resolved configuration.[/dim]")


def handle_errors(func):
    """Decorator that catches AppDetectError and renders formatted CLI output.

    Usage::

        @app.command()
        @handle_errors
        def my_command(...):
            ...  # no try/except needed
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AppDetectError as e:
            _render_error(e)
            if _debug_mode():
                ui.console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            ui.console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130)
        except (typer.Exit, typer.Abort, typer.BadParameter, SystemExit):
            raise
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            ui.console.print(f"\n[bold red]Unexpected error:[/bold red] {e}")
            if _debug_mode():
                ui.console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            else:
                ui.console.print("[dim]Set APPDETECT_DEBUG=1 for full traceback.[/dim]")
            raise typer.Exit(1)

    return wrapper
