"""
Root Typer application for the bootforge CLI.

Usage::

    bootforge build ./kernel.bin --cmdline "console=ttyS0"
    bootforge build ./kernel.bin --runtime cli --output disk.img
    bootforge compile ./app --image projectunik/compilers-rump-go-hw --env GOARCH=amd64
    bootforge health
"""

from __future__ import annotations

import typer
from typer import Typer

from bootforge.cli.commands import build, compile_sources, health
from bootforge.core.logging import configure_logging
from bootforge.core.settings import get_settings

app = Typer(
    name="bootforge",
    help="bootforge — build bootable disk images from compiled unikernels.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from bootforge import __version__

        typer.echo(f"bootforge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON."),
) -> None:
    """bootforge CLI — build, compile, and check the container runtime."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=json_logs or settings.log_format == "json",
    )


app.command("build")(build)
app.command("compile")(compile_sources)
app.command("health")(health)
