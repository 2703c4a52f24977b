"""Organize a batch of files into the movie and TV libraries.

``organize`` is the planner followed by the executor. Preview mode is the same
call with ``preview=True``: destinations are computed and conflicts detected,
but nothing on disk changes.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from vidshelf.core.apply import ConflictResolver, execute_plan
from vidshelf.core.planner import library_root, plan_files
from vidshelf.fs.move_log import MoveLog
from vidshelf.fs.operations import FileSystem, LocalFileSystem
from vidshelf.models.core import EnrichedMetadata, MediaFile, MediaMetadata
from vidshelf.models.plan import ProcessedFile


async def organize(
    files: Sequence[MediaFile],
    metadatas: Sequence[MediaMetadata | EnrichedMetadata],
    movie_root: Path,
    tv_root: Path,
    conflict_resolver: ConflictResolver,
    preview: bool,
    filesystem: Optional[FileSystem] = None,
    move_log: Optional[MoveLog] = None,
) -> List[ProcessedFile]:
    """Plan and execute (or preview) the moves for one batch.

    Args:
        files: Scanned files.
        metadatas: Resolved metadata, parallel to *files*.
        movie_root: Root of the movie library.
        tv_root: Root of the TV library.
        conflict_resolver: Decides skip/overwrite for existing destinations.
        preview: Compute only; perform no filesystem mutation.
        filesystem: Defaults to the local disk.
        move_log: Receives every completed move; defaults to an in-memory log.

    Returns:
        Exactly one ProcessedFile per input file.

    Raises:
        DestinationRootError: If a needed library root is unusable (apply mode).
    """
    filesystem = filesystem or LocalFileSystem()
    if move_log is None and not preview:
        move_log = MoveLog()

    planned = plan_files(files, metadatas, movie_root, tv_root)
    roots = [
        library_root(item.metadata, movie_root, tv_root)
        for item in planned
        if item.movable
    ]
    return await execute_plan(
        planned,
        conflict_resolver,
        preview,
        filesystem,
        move_log,
        roots=roots,
    )
