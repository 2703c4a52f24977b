"""Tests for the vidshelf.core.scanner module."""

from pathlib import Path

import pytest

from vidshelf.core.scanner import ScanOptions, classify, scan_directory
from vidshelf.models.core import FileRole


@pytest.fixture
def media_tree(tmp_path: Path) -> Path:
    """Create a small download folder with videos, subtitles and noise."""
    files = [
        "Movie.2020.1080p.mkv",
        "Movie.2020.1080p.eng.srt",
        "Movie.2020.1080p-sample.mkv",
        "notes.txt",
        "poster.jpg",
        ".hidden.mkv",
        "Show/Season 1/Show.S01E01.mp4",
        "Show/Season 1/Show.S01E01.en.ass",
        ".cache/Other.mkv",
    ]
    for name in files:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x")
    return tmp_path


def test_scan_finds_videos_and_subtitles(media_tree: Path) -> None:
    result = scan_directory(media_tree)

    names = [f.path.relative_to(media_tree).as_posix() for f in result.files]
    assert names == [
        "Movie.2020.1080p.eng.srt",
        "Movie.2020.1080p.mkv",
        "Show/Season 1/Show.S01E01.en.ass",
        "Show/Season 1/Show.S01E01.mp4",
    ]
    assert [f.path.name for f in result.primaries] == [
        "Movie.2020.1080p.mkv",
        "Show.S01E01.mp4",
    ]
    assert len(result.companions) == 2
    # sample, notes and poster
    assert result.skipped_files == 3


def test_scan_without_subtitles(media_tree: Path) -> None:
    result = scan_directory(media_tree, ScanOptions(include_subtitles=False))
    assert all(f.role == FileRole.PRIMARY for f in result.files)


def test_scan_non_recursive(media_tree: Path) -> None:
    result = scan_directory(media_tree, ScanOptions(recursive=False))
    assert all(f.path.parent == media_tree for f in result.files)


def test_scan_hidden_files_on_request(media_tree: Path) -> None:
    result = scan_directory(media_tree, ScanOptions(include_hidden=True))
    names = {f.path.name for f in result.files}
    assert {".hidden.mkv", "Other.mkv"} <= names


def test_scan_is_deterministic(media_tree: Path) -> None:
    assert scan_directory(media_tree).files == scan_directory(media_tree).files


def test_scan_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        scan_directory(tmp_path / "missing")


def test_scan_file_instead_of_directory(tmp_path: Path) -> None:
    path = tmp_path / "movie.mkv"
    path.write_text("x")
    with pytest.raises(ValueError):
        scan_directory(path)


@pytest.mark.parametrize(
    ("name", "role"),
    [
        ("Movie.MKV", FileRole.PRIMARY),
        ("Movie.m4v", FileRole.PRIMARY),
        ("Movie.srt", FileRole.COMPANION),
        ("Movie.sub", FileRole.COMPANION),
        ("Movie.nfo", None),
        ("Sample.mkv", None),
    ],
)
def test_classify(name: str, role: FileRole | None) -> None:
    assert classify(Path(name)) == role
