"""Executor for planned file moves.

This module turns :class:`PlannedFile` decisions into :class:`ProcessedFile`
results, one file at a time:
- no conflict: ``move`` (``preview`` in preview mode),
- destination exists: ``overwrite`` in preview mode, otherwise whatever the
  injected conflict resolver answers (``skip`` or ``overwrite``).

Preview mode only checks for existence and never touches the filesystem. In
apply mode every move is followed by a move-log entry; a failed move is recorded
on its own file and the batch carries on.
"""

import logging
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from vidshelf.errors import DestinationRootError, MoveError, StoreError
from vidshelf.fs.move_log import MoveLog
from vidshelf.fs.operations import FileSystem
from vidshelf.models.core import Action
from vidshelf.models.plan import PlannedFile, ProcessedFile

logger = logging.getLogger(__name__)

ConflictResolver = Callable[[Path, Path], Awaitable[Action]]
"""``async (original_path, planned_path) -> Action.SKIP | Action.OVERWRITE``."""

CONFLICT_ANSWERS = (Action.SKIP, Action.OVERWRITE)


async def always_skip(original_path: Path, planned_path: Path) -> Action:
    """Conflict resolver that keeps every existing destination."""
    return Action.SKIP


async def always_overwrite(original_path: Path, planned_path: Path) -> Action:
    """Conflict resolver that replaces every existing destination."""
    return Action.OVERWRITE


async def check_destination_roots(roots: Iterable[Path], filesystem: FileSystem) -> None:
    """Create each library root and make sure it is writable.

    Raises:
        DestinationRootError: For the first root that cannot be used.
    """
    for root in dict.fromkeys(roots):
        try:
            await filesystem.ensure_dir(root)
        except OSError as exc:
            raise DestinationRootError(root, str(exc)) from exc
        if not await filesystem.is_writable(root):
            raise DestinationRootError(root, "not writable")


def _result(
    planned: PlannedFile,
    action: Action,
    errors: Optional[List[str]] = None,
) -> ProcessedFile:
    return ProcessedFile(
        original_path=planned.media_file.path,
        planned_path=planned.planned_path,
        metadata=planned.metadata,
        action=action,
        errors=list(planned.errors) + (errors or []),
    )


async def _move(
    planned: PlannedFile,
    action: Action,
    filesystem: FileSystem,
    move_log: Optional[MoveLog],
) -> ProcessedFile:
    """Perform one move in apply mode, isolating its failure."""
    src, dst = planned.media_file.path, planned.planned_path
    try:
        await filesystem.ensure_dir(dst.parent)
        await filesystem.move(src, dst, overwrite=action == Action.OVERWRITE)
    except (MoveError, OSError) as exc:
        logger.error("Failed to move %s -> %s: %s", src, dst, exc)
        return _result(planned, Action.SKIP, [f"Move failed: {exc}"])

    errors = []
    if move_log is not None:
        try:
            await move_log.record(src, dst)
        except StoreError as exc:
            logger.error("Moved %s but could not log it: %s", src, exc)
            errors.append(f"Move not logged: {exc}")
    logger.info("%s %s -> %s", action.value, src, dst)
    return _result(planned, action, errors)


async def _ask_resolver(
    conflict_resolver: ConflictResolver, item: PlannedFile
) -> tuple[Optional[Action], Optional[str]]:
    """Await the resolver once; return its action or an error for the file."""
    src, dst = item.media_file.path, item.planned_path
    try:
        answer = await conflict_resolver(src, dst)
    except Exception as exc:
        # Reason: a failing resolver only skips the file it was asked about.
        logger.error("Conflict resolver failed for %s: %s", dst, exc)
        return None, f"Conflict resolver failed: {exc}"
    action: Optional[Action]
    try:
        action = Action(answer)
    except ValueError:
        action = None
    if action not in CONFLICT_ANSWERS:
        logger.warning("Conflict resolver answered %r for %s; skipping", answer, dst)
        shown = answer.value if isinstance(answer, Action) else answer
        return None, f"Invalid conflict answer: {shown}"
    return action, None


async def execute_plan(
    planned: Sequence[PlannedFile],
    conflict_resolver: ConflictResolver,
    preview: bool,
    filesystem: FileSystem,
    move_log: Optional[MoveLog] = None,
    roots: Iterable[Path] = (),
) -> List[ProcessedFile]:
    """Execute (or preview) a plan, strictly one file after another.

    Args:
        planned: Output of :func:`vidshelf.core.planner.plan_files`.
        conflict_resolver: Awaited once per conflicting file in apply mode.
        preview: When True, only compute actions; nothing is mutated.
        filesystem: Filesystem to check and move against.
        move_log: Receives one entry per successful move in apply mode.
        roots: Library roots to validate once, up front, in apply mode.

    Returns:
        One ProcessedFile per planned file, in plan order.

    Raises:
        DestinationRootError: If a library root is unusable (apply mode only).
    """
    if not preview:
        await check_destination_roots(roots, filesystem)

    results: List[ProcessedFile] = []
    for item in planned:
        if not item.movable:
            results.append(_result(item, Action.SKIP))
            continue
        if item.planned_path == item.media_file.path:
            # Already where it belongs.
            results.append(_result(item, Action.SKIP))
            continue

        exists = await filesystem.exists(item.planned_path)
        if preview:
            results.append(_result(item, Action.OVERWRITE if exists else Action.PREVIEW))
            continue

        action = Action.MOVE
        if exists:
            answer, error = await _ask_resolver(conflict_resolver, item)
            if answer is None:
                results.append(_result(item, Action.SKIP, [error or "No conflict answer"]))
                continue
            action = answer
            if action == Action.SKIP:
                logger.info("Skipping %s: destination exists", item.media_file.path)
                results.append(_result(item, Action.SKIP))
                continue

        results.append(await _move(item, action, filesystem, move_log))
    return results
