"""bootforge command-line interface (``bootforge``)."""

from bootforge.cli.app import app

__all__ = ["app"]
