"""Command-line interface for vidshelf.

This package provides the Typer app and global console for all CLI commands and
user-facing output.

- app: The Typer application object, used by the ``vidshelf`` entrypoint.
- console: Rich Console instance for consistent, styled output.
"""

from vidshelf.cli.commands import app
from vidshelf.cli.console import console

__all__ = ["app", "console"]
