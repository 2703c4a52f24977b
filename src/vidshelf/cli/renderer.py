"""Renderer for CLI output.

Renders organizer results as a Rich table followed by a one-line summary, the
verification report, and the contents of the metadata store.
Action colors: green for moves, yellow for previews, magenta for overwrites,
cyan for skips and red for anything that carries an error.
"""

from collections import Counter
from typing import Sequence

from rich.console import Console
from rich.table import Table

from vidshelf.core.verify import VerificationReport
from vidshelf.metadata.models import EpisodeRecord, MovieRecord, SeriesRecord
from vidshelf.models.core import Action
from vidshelf.models.plan import ProcessedFile

ACTION_STYLES = {
    Action.MOVE: "green bold",
    Action.PREVIEW: "yellow",
    Action.OVERWRITE: "magenta bold",
    Action.SKIP: "cyan",
}


def render_results(
    processed: Sequence[ProcessedFile], console: Console | None = None, preview: bool = False
) -> None:
    """Print one row per processed file and a summary line.

    Args:
        processed: Organizer results.
        console: Optional Console instance to use for rendering.
        preview: Title the table as a preview rather than a run.
    """
    console = console or Console()

    table = Table(title="Preview" if preview else "Organized files")
    table.add_column("Action", style="bold")
    table.add_column("Source", style="cyan")
    table.add_column("Destination", style="green")
    table.add_column("Errors", style="red")

    for item in processed:
        style = "red" if item.errors else ACTION_STYLES.get(item.action, "white")
        table.add_row(
            item.action.value,
            str(item.original_path),
            str(item.planned_path) if item.planned_path != item.original_path else "",
            "; ".join(item.errors),
            style=style,
        )

    console.print(table)

    counts = Counter(item.action for item in processed)
    failed = sum(1 for item in processed if item.errors)
    console.print(
        " | ".join(
            [f"Total: {len(processed)}"]
            + [f"{action.value}: {counts[action]}" for action in Action if counts[action]]
        )
    )
    if failed:
        console.print(f"Files with errors: {failed}", style="red bold")


def render_verification(report: VerificationReport, console: Console | None = None) -> None:
    """Print misplaced files and empty folders found by ``verify_library``."""
    console = console or Console()

    if report.misplaced:
        table = Table(title=f"Misplaced files ({len(report.misplaced)})")
        table.add_column("File", style="bold")
        table.add_column("Current", style="cyan")
        table.add_column("Should be", style="green")
        table.add_column("Reason", style="yellow")
        for item in report.misplaced:
            table.add_row(
                item.current_path.name,
                str(item.current_path.parent),
                str(item.correct_path),
                item.reason,
            )
        console.print(table)

    if report.empty_folders:
        table = Table(title=f"Empty folders to remove ({len(report.empty_folders)})")
        table.add_column("Folder", style="magenta")
        for folder in report.empty_folders:
            table.add_row(str(folder))
        console.print(table)

    for item in report.unresolved:
        console.print(
            f"[yellow]Unresolved:[/yellow] {item.media_file.path} "
            f"({'; '.join(item.errors)})"
        )


def _cell(value: object) -> str:
    return "" if value is None else str(value)


def render_store_contents(
    movies: Sequence[MovieRecord],
    series: Sequence[SeriesRecord],
    episodes: Sequence[EpisodeRecord],
    console: Console | None = None,
) -> None:
    """Print the metadata store as one table per record kind."""
    console = console or Console()
    titles = {show.id: show.title for show in series}

    if movies:
        table = Table(title="Movies")
        for column in ("Title", "Year", "Genre", "Rating", "ID"):
            table.add_column(column)
        for movie in movies:
            table.add_row(
                movie.title,
                _cell(movie.year),
                _cell(movie.genre),
                _cell(movie.rating),
                movie.id,
            )
        console.print(table)
    else:
        console.print("No movies in database.")

    if series:
        table = Table(title="TV Shows")
        for column in ("Title", "Year", "Genre", "Rating", "Seasons", "ID"):
            table.add_column(column)
        for show in series:
            table.add_row(
                show.title,
                _cell(show.year),
                _cell(show.genre),
                _cell(show.rating),
                _cell(show.total_seasons),
                show.id,
            )
        console.print(table)
    else:
        console.print("No TV shows in database.")

    if episodes:
        table = Table(title="TV Episodes")
        for column in ("Series", "Season", "Episode", "Title", "Rating", "Series ID"):
            table.add_column(column)
        for episode in episodes:
            table.add_row(
                titles.get(episode.series_id, ""),
                str(episode.season),
                str(episode.episode),
                episode.title,
                _cell(episode.rating),
                episode.series_id,
            )
        console.print(table)
    else:
        console.print("No TV episodes in database.")
