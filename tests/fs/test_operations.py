"""Unit tests for vidshelf.fs.operations.

Covers:
- atomic_move on the same filesystem and across devices (EXDEV)
- Windows long path support
- Overwrite protection and logic (FileExistsError, identical skip, replacement)
- The LocalFileSystem adapter used by the organizer
"""

import errno
import os
import sys
from pathlib import Path

import pytest

from vidshelf.errors import MoveError
from vidshelf.fs.operations import (
    WIN_MAX_PATH,
    LocalFileSystem,
    atomic_move,
    get_win_long_path_prefix,
)


def test_atomic_move_basic(tmp_path: Path) -> None:
    """Test that atomic_move renames a file from src to dst on the same filesystem."""
    src = tmp_path / "Movie.mkv"
    dst = tmp_path / "Movie (2020).mkv"
    src.write_text("hello world")

    atomic_move(src, dst)

    assert not src.exists()
    assert dst.read_text() == "hello world"


def test_cross_device(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that atomic_move falls back to copy+unlink on cross-device (EXDEV) error."""
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("cross device")

    def raise_exdev(self: Path, target: Path) -> None:
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(Path, "rename", raise_exdev)

    atomic_move(src, dst)

    assert not src.exists()
    assert dst.read_text() == "cross device"


def test_other_os_errors_propagate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    src = tmp_path / "source.mkv"
    src.write_text("x")

    def raise_eacces(self: Path, target: Path) -> None:
        raise OSError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(Path, "rename", raise_eacces)

    with pytest.raises(OSError):
        atomic_move(src, tmp_path / "dest.mkv")
    assert src.exists()


def test_long_paths_windows(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Test that atomic_move adds the Windows long path prefix for long paths on Windows."""
    if sys.platform != "win32":
        pytest.skip("Windows-only test")

    src = tmp_path / ("a" * (WIN_MAX_PATH + 1))
    dst = tmp_path / ("b" * (WIN_MAX_PATH + 1))
    src.write_text("long path")
    called = {}

    def fake_rename(self: Path, target: Path) -> None:
        called["src"] = str(self)
        called["dst"] = str(target)

    monkeypatch.setattr(Path, "rename", fake_rename)

    atomic_move(src, dst)

    prefix = get_win_long_path_prefix()
    assert called["src"].startswith(prefix)
    assert called["dst"].startswith(prefix)


def test_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        atomic_move(tmp_path / "missing.mkv", tmp_path / "dest.mkv")


def test_overwrite_false_raises(tmp_path: Path) -> None:
    """Test that atomic_move raises FileExistsError if dst exists and overwrite is False."""
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("src data")
    dst.write_text("dst data")

    with pytest.raises(FileExistsError):
        atomic_move(src, dst, overwrite=False)

    assert src.exists()
    assert dst.read_text() == "dst data"


def test_overwrite_with_identical_content(tmp_path: Path) -> None:
    """Identical files: the source is removed and the destination kept."""
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("identical data")
    dst.write_text("identical data")

    atomic_move(src, dst, overwrite=True)

    assert not src.exists()
    assert dst.read_text() == "identical data"


def test_overwrite_replaces_nonidentical(tmp_path: Path) -> None:
    """Test that atomic_move replaces dst with src if overwrite=True and files differ."""
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("new data")
    dst.write_text("old data")

    atomic_move(src, dst, overwrite=True)

    assert not src.exists()
    assert dst.read_text() == "new data"


@pytest.mark.asyncio
class TestLocalFileSystem:
    async def test_exists_and_list_dir(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        (tmp_path / "b.mkv").write_text("b")
        (tmp_path / "a.mkv").write_text("a")

        assert await fs.exists(tmp_path / "a.mkv")
        assert not await fs.exists(tmp_path / "c.mkv")
        assert await fs.list_dir(tmp_path) == [tmp_path / "a.mkv", tmp_path / "b.mkv"]

    async def test_ensure_dir_is_idempotent(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        target = tmp_path / "TV" / "Show" / "Season 1"
        await fs.ensure_dir(target)
        await fs.ensure_dir(target)
        assert target.is_dir()

    async def test_move_wraps_errors(self, tmp_path: Path) -> None:
        with pytest.raises(MoveError):
            await LocalFileSystem().move(tmp_path / "missing.mkv", tmp_path / "x.mkv")

    async def test_move_with_overwrite(self, tmp_path: Path) -> None:
        src = tmp_path / "new.mkv"
        dst = tmp_path / "old.mkv"
        src.write_text("new")
        dst.write_text("old")
        await LocalFileSystem().move(src, dst, overwrite=True)
        assert dst.read_text() == "new"

    async def test_is_writable_for_missing_dir(self, tmp_path: Path) -> None:
        assert await LocalFileSystem().is_writable(tmp_path / "not" / "yet" / "there")

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permission bits are not enforced",
    )
    async def test_read_only_dir_is_not_writable(self, tmp_path: Path) -> None:
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            assert not await LocalFileSystem().is_writable(locked)
        finally:
            locked.chmod(0o700)

    async def test_remove_dir_only_when_empty(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        empty = tmp_path / "empty"
        empty.mkdir()
        full = tmp_path / "full"
        full.mkdir()
        (full / "a.srt").write_text("a")

        await fs.remove_dir(empty)
        assert not empty.exists()
        with pytest.raises(OSError):
            await fs.remove_dir(full)
        assert (full / "a.srt").exists()
