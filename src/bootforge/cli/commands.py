"""
CLI commands: ``build``, ``compile`` and ``health``.

Every command resolves settings, applies command-line overrides, creates
the runtime once, and maps bootforge errors to a red message and exit 1.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from bootforge.build.bootable import BootImageBuilder, BuildRequest
from bootforge.build.recipes import compile_in_container
from bootforge.cli.utils import console, err_console, print_error
from bootforge.core.errors import BootforgeError
from bootforge.core.settings import BootforgeSettings, RuntimeKind, get_settings
from bootforge.runtimes.factory import create_runtime


def _resolve_settings(runtime: RuntimeKind | None) -> BootforgeSettings:
    settings = get_settings()
    if runtime is not None:
        settings = settings.model_copy(update={"runtime": runtime})
    return settings


# ── Build ────────────────────────────────────────────────────────────────


def build(
    kernel: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Compiled kernel binary.",
    ),
    cmdline: str = typer.Option("", "--cmdline", "-a", help="Kernel command line."),
    runtime: RuntimeKind | None = typer.Option(  # noqa: UP007
        None, "--runtime", "-r", help="Container runtime strategy (api or cli).",
    ),
    image: str | None = typer.Option(None, "--image", help="Override the boot-creator image."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Move the image here."),
    json_out: bool = typer.Option(False, "--json", help="Output result as JSON."),
) -> None:
    """Build a bootable disk image from a compiled kernel."""
    settings = _resolve_settings(runtime)
    try:
        container_runtime = create_runtime(settings)
        builder = BootImageBuilder(container_runtime, settings, image=image)
        result = builder.build(BuildRequest(kernel, cmdline))
    except BootforgeError as exc:
        if json_out:
            typer.echo(json.dumps({"error": exc.to_dict()}))
        else:
            print_error(exc)
        raise typer.Exit(code=1)

    image_path = result.image_path
    if output is not None:
        try:
            shutil.move(str(image_path), str(output))
        except OSError as exc:
            err_console.print(
                f"[bold red]Error[/bold red]: cannot write {escape(str(output))}: {escape(str(exc))}"
            )
            err_console.print(f"[dim]image left at {image_path}[/dim]")
            raise typer.Exit(code=1)
        image_path = output

    if json_out:
        typer.echo(json.dumps({
            "image_path": str(image_path),
            "kernel": str(kernel),
            "cmdline": cmdline,
            "runtime": container_runtime.runtime_name,
        }))
    else:
        typer.echo(str(image_path))


# ── Compile ──────────────────────────────────────────────────────────────


def compile_sources(
    source_dir: Path = typer.Argument(
        ..., exists=True, file_okay=False, help="Folder bound at /opt/code.",
    ),
    image: str = typer.Option(..., "--image", "-i", help="Compiler image."),
    env: list[str] = typer.Option([], "--env", "-e", help="KEY=VALUE. Repeatable."),
    runtime: RuntimeKind | None = typer.Option(  # noqa: UP007
        None, "--runtime", "-r", help="Container runtime strategy (api or cli).",
    ),
) -> None:
    """Run a compiler image against a source folder."""
    settings = _resolve_settings(runtime)
    try:
        container_runtime = create_runtime(settings)
        compile_in_container(container_runtime, image, source_dir, env)
    except ValueError as exc:
        err_console.print(f"[bold red]Error[/bold red]: {escape(str(exc))}")
        raise typer.Exit(code=2)
    except BootforgeError as exc:
        print_error(exc)
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] compiled {source_dir} with {image}")


# ── Health ───────────────────────────────────────────────────────────────


def health(
    runtime: RuntimeKind | None = typer.Option(  # noqa: UP007
        None, "--runtime", "-r", help="Container runtime strategy (api or cli).",
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Check that the container runtime is reachable."""
    settings = _resolve_settings(runtime)
    try:
        status = create_runtime(settings).health()
    except BootforgeError as exc:
        print_error(exc)
        raise typer.Exit(code=1)

    if json_out:
        typer.echo(json.dumps({
            "healthy": status.healthy,
            "runtime": status.runtime,
            "version": status.version,
            "message": status.message,
            "latency_ms": status.latency_ms,
        }))
    else:
        table = Table(title="Container Runtime")
        table.add_column("Runtime", style="bold cyan")
        table.add_column("Status")
        table.add_column("Version")
        table.add_column("Latency")
        table.add_column("Message")
        table.add_row(
            status.runtime,
            "[green]healthy[/green]" if status.healthy else "[red]unhealthy[/red]",
            status.version or "—",
            f"{status.latency_ms:.0f}ms" if status.latency_ms is not None else "—",
            status.message or "—",
        )
        console.print(table)

    if not status.healthy:
        raise typer.Exit(code=1)
