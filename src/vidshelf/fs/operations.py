"""Filesystem operations for vidshelf.

Provides a robust, cross-platform, atomic file-move helper and the
:class:`LocalFileSystem` adapter the organizer executes its plan against.
``atomic_move`` handles cross-device moves, Windows long paths and overwrite
logic; the adapter runs every blocking call in ``asyncio.to_thread``.
"""

import asyncio
import errno
import logging
import os
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path

from vidshelf.errors import MoveError

logger = logging.getLogger(__name__)

WIN_MAX_PATH = 259  # Windows MAX_PATH limit for NTFS long paths


def get_win_long_path_prefix() -> str:
    """Return the Windows NTFS long path prefix."""
    bslash = chr(92)
    return bslash + bslash + "?" + bslash


def _win_long_path(path: Path) -> str:
    s = str(path)
    prefix = get_win_long_path_prefix()
    if sys.platform == "win32" and len(s) > WIN_MAX_PATH and not s.startswith(prefix):
        return prefix + s
    return s


def _files_identical(path1: Path, path2: Path, chunk_size: int = 8192) -> bool:
    if path1.stat().st_size != path2.stat().st_size:
        return False
    with path1.open("rb") as f1, path2.open("rb") as f2:
        while True:
            b1 = f1.read(chunk_size)
            b2 = f2.read(chunk_size)
            if b1 != b2:
                return False
            if not b1:
                return True


def atomic_move(src: Path, dst: Path, *, overwrite: bool = False) -> None:
    """Atomically move *src* to *dst*.

    Falls back to copy-and-delete when the rename crosses devices. With
    *overwrite*, an identical destination is kept and *src* is simply removed.

    Args:
        src: Source file path.
        dst: Destination file path.
        overwrite: If True, replace destination if it exists.

    Raises:
        FileExistsError: If dst exists and *overwrite* is False.
        FileNotFoundError: If src is missing.
        OSError: For non-recoverable FS errors.

    Example:
        >>> from pathlib import Path
        >>> from vidshelf.fs.operations import atomic_move
        >>> src = Path('a.txt')
        >>> dst = Path('b.txt')
        >>> src.write_text('hello')
        >>> atomic_move(src, dst)
        >>> dst.read_text()
        'hello'
    """
    if not src.exists():
        raise FileNotFoundError(f"Source {src} does not exist.")
    if dst.exists():
        if not overwrite:
            raise FileExistsError(f"Destination {dst} exists and overwrite is False.")
        if _files_identical(src, dst):
            src.unlink()
            return
        dst.unlink()
    src_path = _win_long_path(src)
    dst_path = _win_long_path(dst)
    try:
        Path(src_path).rename(dst_path)
    except OSError as e:
        if e.errno == errno.EXDEV:
            shutil.copy2(src_path, dst_path)
            Path(src_path).unlink()
        else:
            raise


class FileSystem(ABC):
    """Filesystem operations consumed by the organizer's executor."""

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def ensure_dir(self, path: Path) -> None:
        raise NotImplementedError

    @abstractmethod
    async def move(self, src: Path, dst: Path, *, overwrite: bool = False) -> None:
        """Move *src* to *dst*; raise MoveError on failure."""
        raise NotImplementedError

    @abstractmethod
    async def list_dir(self, path: Path) -> list[Path]:
        raise NotImplementedError

    @abstractmethod
    async def is_writable(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def remove_dir(self, path: Path) -> None:
        """Remove the empty directory *path*; raise OSError if it is not empty."""
        raise NotImplementedError


def _nearest_existing(path: Path) -> Path:
    """Return *path* or its closest existing ancestor."""
    current = path
    while not current.exists() and current.parent != current:
        current = current.parent
    return current


class LocalFileSystem(FileSystem):
    """The local disk, via pathlib and :func:`atomic_move`."""

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)

    async def ensure_dir(self, path: Path) -> None:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

    async def move(self, src: Path, dst: Path, *, overwrite: bool = False) -> None:
        try:
            await asyncio.to_thread(atomic_move, src, dst, overwrite=overwrite)
        except OSError as exc:
            raise MoveError(f"Could not move {src} -> {dst}: {exc}") from exc
        logger.debug("Moved %s -> %s", src, dst)

    async def list_dir(self, path: Path) -> list[Path]:
        return await asyncio.to_thread(lambda: sorted(path.iterdir()))

    async def is_writable(self, path: Path) -> bool:
        """Whether *path* (or, if missing, its closest existing parent) is writable."""

        def check() -> bool:
            target = _nearest_existing(path)
            return target.is_dir() and os.access(target, os.W_OK | os.X_OK)

        return await asyncio.to_thread(check)

    async def remove_dir(self, path: Path) -> None:
        await asyncio.to_thread(path.rmdir)
        logger.debug("Removed empty folder %s", path)
