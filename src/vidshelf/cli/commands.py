"""CLI commands for vidshelf.

This module implements the user-facing commands:
- ``version``: print the installed version.
- ``apply``: scan a folder, resolve metadata, show the planned moves, ask for
  confirmation and organize the files. ``--verify-target`` checks an existing
  library for misfiled media and empty folders instead.
- ``db show``: print the contents of the local metadata store.

Design:
- Annotated is used for CLI argument/option definitions to provide type safety
  and rich help text.
- Exit codes are defined as an Enum for clarity and maintainability.
- All output is routed through the shared Rich console.
- Metadata is resolved once per run; the preview and the real run organize the
  same prepared batch.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.prompt import Confirm, Prompt

from vidshelf.cli.console import console, create_progress
from vidshelf.cli.renderer import render_results, render_store_contents, render_verification
from vidshelf.core.apply import ConflictResolver, always_overwrite, always_skip
from vidshelf.core.pipeline import PipelineResult, organize_prepared, prepare_files
from vidshelf.core.scanner import ScanOptions
from vidshelf.core.verify import fix_library, verify_library
from vidshelf.errors import DestinationRootError, StoreError
from vidshelf.fs.move_log import MoveLog
from vidshelf.metadata.clients.omdb import OMDbClient
from vidshelf.metadata.clients.tmdb import TMDBClient
from vidshelf.metadata.models import EpisodeRecord, MovieRecord, SeriesRecord
from vidshelf.metadata.resolver import MetadataResolver
from vidshelf.metadata.settings import MissingAPIKeyError, Settings
from vidshelf.metadata.store import MetadataStore
from vidshelf.models.core import Action, MediaFile
from vidshelf.models.plan import ProcessedFile
from vidshelf.utils.config import (
    default_database_path,
    library_paths,
    resolve_setting,
    set_setting,
)
from vidshelf.utils.debug import setup_logger

app = typer.Typer(
    name="vidshelf",
    help="Identify movie and TV files and file them into a media library.",
    add_completion=False,
)
db_app = typer.Typer(help="Inspect the local metadata store.")
app.add_typer(db_app, name="db")


# Reason: ExitCode enum provides clear, maintainable exit codes for all CLI
# commands.
class ExitCode(int, Enum):
    """Exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    PARTIAL = 2


SCAN_PATH = Annotated[
    Path,
    typer.Argument(
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
        resolve_path=True,
        help="Folder to scan for video and subtitle files",
    ),
]
MOVIE_PATH = Annotated[
    Optional[Path],
    typer.Option("--movie-path", "-m", help="Movie library root (overrides config)"),
]
TV_PATH = Annotated[
    Optional[Path],
    typer.Option("--tv-path", "-t", help="TV library root (overrides config)"),
]
PREVIEW = Annotated[
    bool,
    typer.Option("--preview", help="Show what would happen without moving files"),
]
YES = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip the confirmation and overwrite existing destinations without asking",
    ),
]
NO_SUBTITLES = Annotated[
    bool,
    typer.Option("--no-subtitles", help="Leave subtitle files where they are"),
]
VERIFY_TARGET = Annotated[
    bool,
    typer.Option(
        "--verify-target",
        help="Check SCAN_PATH for misfiled media and empty folders and fix them",
    ),
]
NO_SAVE_CONFIG = Annotated[
    bool,
    typer.Option(
        "--no-save-config",
        help="Do not remember --movie-path/--tv-path in the config file",
    ),
]
VERBOSE = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]


async def prompt_conflict(original_path: Path, planned_path: Path) -> Action:
    """Ask the user what to do with an existing destination."""
    console.print(
        f"[yellow]Destination exists:[/yellow] {planned_path}\n  (from {original_path})"
    )
    choice = Prompt.ask(
        "[s]kip or [o]verwrite?", choices=["s", "o"], default="s", console=console
    )
    return Action.OVERWRITE if choice == "o" else Action.SKIP


def _exit_code(processed: list[ProcessedFile]) -> ExitCode:
    if any(item.errors for item in processed):
        return ExitCode.PARTIAL
    return ExitCode.SUCCESS


def _omdb_key(settings: Settings) -> str:
    try:
        settings.require_keys()
    except MissingAPIKeyError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCode.ERROR)
    return str(settings.OMDB_API_KEY)


def _save_library_paths(movie_path: Optional[Path], tv_path: Optional[Path]) -> None:
    """Remember library roots given on the command line for later runs."""
    if movie_path is not None:
        set_setting("library.movie_path", movie_path.expanduser().absolute())
    if tv_path is not None:
        set_setting("library.tv_path", tv_path.expanduser().absolute())


def _prepare(
    scan_path: Path, resolver: MetadataResolver, include_subtitles: bool
) -> PipelineResult:
    """Scan and resolve metadata behind a progress display."""
    with create_progress() as progress:
        task = progress.add_task("Resolving", total=None, filename="")

        def advance(media_file: MediaFile) -> None:
            progress.update(task, advance=1, filename=media_file.name)

        return asyncio.run(
            prepare_files(
                scan_path,
                resolver,
                scan_options=ScanOptions(include_subtitles=include_subtitles),
                progress_callback=advance,
            )
        )


def _print_warnings(result: PipelineResult) -> None:
    for message in result.scan_errors + result.resolution_errors:
        console.print(f"[yellow]Warning:[/yellow] {message}")


def _has_moves(processed: list[ProcessedFile]) -> bool:
    return any(item.action in (Action.PREVIEW, Action.OVERWRITE) for item in processed)


def _organize(
    result: PipelineResult,
    movie_root: Path,
    tv_root: Path,
    preview: bool,
    yes: bool,
    move_log: MoveLog,
) -> ExitCode:
    """Preview, confirm and apply one prepared batch."""
    if preview or not yes:
        processed = asyncio.run(
            organize_prepared(result, movie_root, tv_root, always_skip, True)
        )
        render_results(processed, console=console, preview=True)
        _print_warnings(result)
        if preview:
            return _exit_code(processed)
        if not _has_moves(processed):
            console.print("[yellow]Nothing to move.[/yellow]")
            return _exit_code(processed)
        if not Confirm.ask("Apply these changes?", default=False, console=console):
            console.print("Operation cancelled.")
            return ExitCode.SUCCESS

    conflict_resolver: ConflictResolver = always_overwrite if yes else prompt_conflict
    try:
        processed = asyncio.run(
            organize_prepared(
                result, movie_root, tv_root, conflict_resolver, False, move_log=move_log
            )
        )
    except DestinationRootError as e:
        console.print(f"[red]Error: {e}[/red]")
        return ExitCode.ERROR
    render_results(processed, console=console)
    if yes:
        _print_warnings(result)
    return _exit_code(processed)


def _verify(
    result: PipelineResult,
    scan_path: Path,
    movie_root: Path,
    tv_root: Path,
    preview: bool,
    yes: bool,
    move_log: MoveLog,
) -> ExitCode:
    """Report misfiled media and empty folders, then fix them once confirmed."""
    report = asyncio.run(verify_library(result, scan_path, movie_root, tv_root))
    render_verification(report, console=console)
    unresolved = ExitCode.PARTIAL if report.unresolved else ExitCode.SUCCESS
    if report.is_clean:
        console.print("[green]All files are in their correct locations.[/green]")
        return unresolved
    if preview:
        return unresolved
    if not yes and not Confirm.ask(
        "Move these files and remove the empty folders?", default=False, console=console
    ):
        console.print("Operation cancelled.")
        return ExitCode.SUCCESS

    conflict_resolver: ConflictResolver = always_overwrite if yes else prompt_conflict
    try:
        outcome = asyncio.run(fix_library(report, conflict_resolver, move_log=move_log))
    except DestinationRootError as e:
        console.print(f"[red]Error: {e}[/red]")
        return ExitCode.ERROR
    if outcome.processed:
        render_results(outcome.processed, console=console)
    for folder in outcome.removed_folders:
        console.print(f"[dim]Removed empty folder {folder}[/dim]")
    for message in outcome.errors:
        console.print(f"[yellow]Warning:[/yellow] {message}")
    if outcome.errors or _exit_code(outcome.processed) == ExitCode.PARTIAL:
        return ExitCode.PARTIAL
    return unresolved


@app.command()
def version() -> None:
    """Show the version of vidshelf."""
    from vidshelf.__about__ import __version__

    console.print(f"vidshelf version: [bold]{__version__}[/bold]")


@app.command()
def apply(  # noqa: PLR0913
    scan_path: SCAN_PATH,
    movie_path: MOVIE_PATH = None,
    tv_path: TV_PATH = None,
    preview: PREVIEW = False,
    yes: YES = False,
    no_subtitles: NO_SUBTITLES = False,
    verify_target: VERIFY_TARGET = False,
    no_save_config: NO_SAVE_CONFIG = False,
    verbose: VERBOSE = False,
) -> None:
    """Scan SCAN_PATH and organize its movies and episodes into the library."""
    setup_logger(verbose)
    settings = Settings()
    api_key = _omdb_key(settings)
    tmdb_key = settings.TMDB_API_KEY

    movie_root, tv_root = library_paths(movie_path, tv_path)
    if not no_save_config:
        _save_library_paths(movie_path, tv_path)
    include_subtitles = resolve_setting(
        "scan.include_subtitles",
        default=True,
        cli_value=False if no_subtitles else None,
    )
    database = default_database_path()

    store = MetadataStore(database)
    move_log = MoveLog(database)
    resolver = MetadataResolver(
        store,
        OMDbClient(api_key),
        TMDBClient(tmdb_key) if tmdb_key else None,
    )
    try:
        result = _prepare(scan_path, resolver, include_subtitles)
        if not result.files:
            console.print("[yellow]No media files found.[/yellow]")
            code = ExitCode.SUCCESS
        elif verify_target:
            code = _verify(result, scan_path, movie_root, tv_root, preview, yes, move_log)
        else:
            code = _organize(result, movie_root, tv_root, preview, yes, move_log)
    finally:
        store.close()
        move_log.close()
    raise typer.Exit(code)


async def _store_contents(
    store: MetadataStore,
) -> tuple[list[MovieRecord], list[SeriesRecord], list[EpisodeRecord]]:
    return (
        await store.all_movies(),
        await store.all_series(),
        await store.all_episodes(),
    )


@db_app.command("show")
def db_show() -> None:
    """Show the movies, TV shows and episodes in the metadata store."""
    store = MetadataStore(default_database_path())
    try:
        movies, series, episodes = asyncio.run(_store_contents(store))
    except StoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.ERROR)
    finally:
        store.close()
    render_store_contents(movies, series, episodes, console=console)


def main() -> None:
    """Main entry point for the CLI."""
    app()
