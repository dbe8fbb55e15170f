"""
CLI Utilities - Shared helper functions for command line operations.

This module provides common functionality used across CLI commands:
formatted status lines and the diagnostics table.
"""

from typing import List

import click
from rich.console import Console
from rich.table import Table

from ..core.types import Diagnostic

console = Console()


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_info(message: str) -> None:
    """
    Print an informational message, dimmed.

    Args:
        message (str): The info message to display.
    """
    click.echo(click.style(f"   {message}", dim=True))


def print_diagnostics(diagnostics: List[Diagnostic]) -> None:
    """Render conversion diagnostics as a table."""
    if not diagnostics:
        return
    table = Table(title=f"{len(diagnostics)} warning(s)", show_lines=False)
    table.add_column("Kind", style="yellow", no_wrap=True)
    table.add_column("Document", style="cyan")
    table.add_column("Message")
    for diagnostic in diagnostics:
        table.add_row(str(diagnostic.kind), diagnostic.document or "", diagnostic.message)
    console.print(table)
