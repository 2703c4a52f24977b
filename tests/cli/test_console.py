"""Tests for the shared console helpers."""

from vidshelf.cli.console import console, create_progress


def test_progress_includes_filename_column() -> None:
    progress = create_progress()
    column_types = [type(col).__name__ for col in progress.columns]
    assert column_types[0] == "SpinnerColumn"
    assert "TimeElapsedColumn" in column_types
    assert column_types[-1] == "FilenameColumn"
    assert progress.console is console


def test_progress_counts_files() -> None:
    progress = create_progress()
    task = progress.add_task("Resolving", total=None, filename="")
    progress.update(task, advance=1, filename="Dune.2021.mkv")
    progress.update(task, advance=1, filename="Breaking.Bad.S05E10.mkv")
    [state] = progress.tasks
    assert state.completed == 2
    assert state.fields["filename"] == "Breaking.Bad.S05E10.mkv"
