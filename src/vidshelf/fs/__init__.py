"""Filesystem adapters for vidshelf."""

from vidshelf.fs.move_log import MoveEntry, MoveLog
from vidshelf.fs.operations import FileSystem, LocalFileSystem, atomic_move

__all__ = ["FileSystem", "LocalFileSystem", "MoveEntry", "MoveLog", "atomic_move"]
