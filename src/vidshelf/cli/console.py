"""Shared Rich console for CLI output.

Pretty tracebacks are installed once here so every command gets them.
* Helper :class:`FilenameColumn` and :func:`create_progress` for the
  per-file progress display.
"""

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.traceback import install as install_rich_traceback

# Install rich traceback handler for all CLI commands
install_rich_traceback(show_locals=False)

# Reason: a single console keeps styling consistent and lets tests capture all
# output from one place.
console: Console = Console()


class FilenameColumn(TextColumn):
    """Render the name of the file currently being resolved."""

    def __init__(self) -> None:
        super().__init__("{task.fields[filename]}")


def create_progress() -> Progress:
    """Return the standard progress display: spinner, counter, elapsed, file."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("{task.completed} files"),
        TimeElapsedColumn(),
        FilenameColumn(),
        console=console,
        transient=True,
    )
