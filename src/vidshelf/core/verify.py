"""Library verification: find misfiled media and empty folders.

``verify_library`` plans every file of a prepared batch exactly as ``apply``
would and reports the ones whose current path differs from the planned one,
for example an episode sitting in the movie library. Empty folders under the
scan root are reported too.

``fix_library`` moves the misplaced files through the normal executor (so the
conflict resolver and move log behave as in ``apply``) and then removes every
folder under the scan root that is left empty. The scan root and the library
roots themselves are never removed.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from vidshelf.core.apply import ConflictResolver, execute_plan
from vidshelf.core.pipeline import PipelineResult
from vidshelf.core.planner import library_root, plan_files
from vidshelf.fs.move_log import MoveLog
from vidshelf.fs.operations import FileSystem, LocalFileSystem
from vidshelf.models.core import MediaType
from vidshelf.models.plan import PlannedFile, ProcessedFile
from vidshelf.utils.debug import warn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MisplacedFile:
    """A file whose current location differs from its planned one."""

    planned: PlannedFile
    reason: str

    @property
    def current_path(self) -> Path:
        return self.planned.media_file.path

    @property
    def correct_path(self) -> Path:
        return self.planned.planned_path


@dataclass
class VerificationReport:
    """What ``verify_library`` found under one scan root."""

    scan_root: Path
    movie_root: Path
    tv_root: Path
    misplaced: List[MisplacedFile] = field(default_factory=list)
    empty_folders: List[Path] = field(default_factory=list)
    unresolved: List[PlannedFile] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.misplaced and not self.empty_folders


@dataclass
class FixOutcome:
    """Result of ``fix_library``."""

    processed: List[ProcessedFile] = field(default_factory=list)
    removed_folders: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def misplacement_reason(planned: PlannedFile, movie_root: Path, tv_root: Path) -> str:
    """Explain why *planned* is not where it belongs."""
    current = planned.media_file.path
    if planned.metadata.type == MediaType.TV:
        if _is_within(current, movie_root):
            return "TV file found in the movie library"
        return "TV file in incorrect location"
    if _is_within(current, tv_root):
        return "Movie file found in the TV library"
    return "Movie file in incorrect location"


def find_empty_folders(root: Path, keep: Iterable[Path] = ()) -> List[Path]:
    """Return folders under *root* that hold nothing but empty folders.

    The result is ordered deepest first, so removing the folders in order
    never hits a non-empty one. *root* and the folders in *keep* are never
    included, and a kept folder makes its parents non-empty.
    """
    kept = set(keep)
    empty: set[Path] = set()
    for dirpath, dirnames, filenames in os.walk(root, topdown=False):
        current = Path(dirpath)
        if current == root or current in kept:
            continue
        if not filenames and all(current / name in empty for name in dirnames):
            empty.add(current)
    return sorted(empty, key=lambda p: (-len(p.parts), str(p)))


async def verify_library(
    prepared: PipelineResult,
    scan_root: Path,
    movie_root: Path,
    tv_root: Path,
) -> VerificationReport:
    """Compare every prepared file's location with its planned destination.

    Args:
        prepared: Output of :func:`vidshelf.core.pipeline.prepare_files`.
        scan_root: Folder that was scanned; empty folders are looked for here.
        movie_root: Root of the movie library.
        tv_root: Root of the TV library.

    Returns:
        A report of misplaced files, empty folders and files that could not be
        planned (for example because their metadata could not be resolved).
    """
    scan_root = scan_root.absolute()
    movie_root = movie_root.absolute()
    tv_root = tv_root.absolute()
    report = VerificationReport(scan_root=scan_root, movie_root=movie_root, tv_root=tv_root)

    for item in plan_files(prepared.files, prepared.metadatas, movie_root, tv_root):
        if not item.movable:
            if item.errors:
                report.unresolved.append(item)
            continue
        if item.planned_path != item.media_file.path:
            report.misplaced.append(
                MisplacedFile(item, misplacement_reason(item, movie_root, tv_root))
            )

    report.empty_folders = await asyncio.to_thread(
        find_empty_folders, scan_root, (movie_root, tv_root)
    )
    logger.info(
        "Verified %d files under %s: %d misplaced, %d empty folders",
        len(prepared.files),
        scan_root,
        len(report.misplaced),
        len(report.empty_folders),
    )
    return report


async def fix_library(
    report: VerificationReport,
    conflict_resolver: ConflictResolver,
    filesystem: Optional[FileSystem] = None,
    move_log: Optional[MoveLog] = None,
) -> FixOutcome:
    """Move misplaced files to their planned paths, then prune empty folders.

    Raises:
        DestinationRootError: If a library root is unusable.
    """
    filesystem = filesystem or LocalFileSystem()
    outcome = FixOutcome()

    planned = [item.planned for item in report.misplaced]
    if planned:
        outcome.processed = await execute_plan(
            planned,
            conflict_resolver,
            False,
            filesystem,
            move_log,
            roots=[
                library_root(item.metadata, report.movie_root, report.tv_root)
                for item in planned
            ],
        )

    # Moves can empty more folders than the report listed.
    leftovers = await asyncio.to_thread(
        find_empty_folders, report.scan_root, (report.movie_root, report.tv_root)
    )
    for folder in leftovers:
        try:
            await filesystem.remove_dir(folder)
        except OSError as exc:
            warn(f"Could not remove empty folder {folder}: {exc}")
            outcome.errors.append(f"Could not remove {folder}: {exc}")
            continue
        outcome.removed_folders.append(folder)
    return outcome
