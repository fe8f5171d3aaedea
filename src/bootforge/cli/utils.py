"""
CLI output helpers.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from bootforge.core.errors import BootforgeError, ContainerRuntimeError

console = Console()
err_console = Console(stderr=True)


def print_error(exc: BootforgeError) -> None:
    """Render a bootforge error, including container output when present."""
    err_console.print(
        f"[bold red]Error[/bold red] ({exc.category.value}): {escape(exc.message)}"
    )
    if isinstance(exc, ContainerRuntimeError):
        if exc.exit_code is not None:
            err_console.print(f"  exit code: {exc.exit_code}")
        if exc.diagnostics:
            err_console.print("[dim]--- container output ---[/dim]")
            err_console.print(escape(exc.diagnostics.rstrip()), highlight=False)
    if exc.cause is not None:
        err_console.print(f"[dim]caused by: {escape(str(exc.cause))}[/dim]")
