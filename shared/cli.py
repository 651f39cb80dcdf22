"""Console output helpers for CLI commands."""

import functools
import sys
from typing import Callable, Optional

import click
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def info(message: str) -> None:
    """Print an informational message."""
    err_console.print(f"[blue]ℹ[/blue] {message}")


def success(message: str) -> None:
    """Print a success message."""
    err_console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[bold red]✗[/bold red] {message}")


def create_table(title: Optional[str] = None, **kwargs) -> Table:
    """Create a rich table with the default style."""
    return Table(title=title, show_header=True, header_style="bold magenta", **kwargs)


def print_table(table: Table) -> None:
    """Print a rich table to stdout."""
    console.print(table)


def handle_errors(func: Callable) -> Callable:
    """
    Turn uncaught exceptions in a command into a clean exit.

    Click's own exits and aborts pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.exceptions.Exit, click.ClickException, click.Abort, SystemExit):
            raise
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            error(f"Unexpected error: {e}")
            sys.exit(1)

    return wrapper
