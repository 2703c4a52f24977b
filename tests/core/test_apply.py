"""Tests for vidshelf.core.apply.

This test suite covers:
- Preview mode never mutating the filesystem
- Conflict handling through the injected resolver
- Per-file isolation of move failures
- Up-front validation of library roots
"""

from pathlib import Path
from typing import List, Tuple

import pytest

from vidshelf.core.apply import always_overwrite, always_skip, execute_plan
from vidshelf.errors import DestinationRootError, MoveError
from vidshelf.fs.move_log import MoveLog
from vidshelf.fs.operations import FileSystem, LocalFileSystem
from vidshelf.models.core import Action, FileRole, MediaFile, MediaMetadata
from vidshelf.models.plan import PlannedFile


class RecordingFileSystem(FileSystem):
    """In-memory filesystem that records every call it receives."""

    def __init__(self, existing: set[Path] | None = None, writable: bool = True) -> None:
        self.files = set(existing or ())
        self.writable = writable
        self.mutations: List[Tuple[str, Path]] = []
        self.fail_on: set[Path] = set()

    async def exists(self, path: Path) -> bool:
        return path in self.files

    async def ensure_dir(self, path: Path) -> None:
        self.mutations.append(("ensure_dir", path))

    async def move(self, src: Path, dst: Path, *, overwrite: bool = False) -> None:
        if src in self.fail_on:
            raise MoveError(f"disk full while moving {src}")
        self.mutations.append(("move", src))
        self.files.discard(src)
        self.files.add(dst)

    async def list_dir(self, path: Path) -> list[Path]:
        return sorted(p for p in self.files if p.parent == path)

    async def is_writable(self, path: Path) -> bool:
        return self.writable

    async def remove_dir(self, path: Path) -> None:
        self.mutations.append(("remove_dir", path))


def _planned(src: str, dst: str, movable: bool = True) -> PlannedFile:
    return PlannedFile(
        media_file=MediaFile.from_path(Path(src), FileRole.PRIMARY),
        planned_path=Path(dst),
        metadata=MediaMetadata(title="Movie"),
        movable=movable,
    )


class CountingResolver:
    def __init__(self, answer: Action) -> None:
        self.answer = answer
        self.calls: List[Tuple[Path, Path]] = []

    async def __call__(self, original_path: Path, planned_path: Path) -> Action:
        self.calls.append((original_path, planned_path))
        return self.answer


@pytest.mark.asyncio
class TestPreview:
    async def test_preview_performs_no_mutation(self) -> None:
        fs = RecordingFileSystem(existing={Path("/lib/b.mkv")})
        resolver = CountingResolver(Action.OVERWRITE)
        plan = [_planned("/in/a.mkv", "/lib/a.mkv"), _planned("/in/b.mkv", "/lib/b.mkv")]

        results = await execute_plan(plan, resolver, True, fs, roots=[Path("/lib")])

        assert fs.mutations == []
        assert resolver.calls == []
        assert [r.action for r in results] == [Action.PREVIEW, Action.OVERWRITE]

    async def test_preview_does_not_check_roots(self) -> None:
        fs = RecordingFileSystem(writable=False)
        results = await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv")], always_skip, True, fs, roots=[Path("/lib")]
        )
        assert results[0].action == Action.PREVIEW

    async def test_preview_and_apply_plan_same_paths(self) -> None:
        plan = [_planned("/in/a.mkv", "/lib/a.mkv")]
        previewed = await execute_plan(plan, always_skip, True, RecordingFileSystem())
        applied = await execute_plan(plan, always_skip, False, RecordingFileSystem())
        assert previewed[0].planned_path == applied[0].planned_path


@pytest.mark.asyncio
class TestConflicts:
    @pytest.mark.parametrize("answer", [Action.SKIP, Action.OVERWRITE])
    async def test_resolver_called_once_and_obeyed(self, answer: Action) -> None:
        fs = RecordingFileSystem(existing={Path("/lib/a.mkv")})
        resolver = CountingResolver(answer)

        [result] = await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv")], resolver, False, fs
        )

        assert resolver.calls == [(Path("/in/a.mkv"), Path("/lib/a.mkv"))]
        assert result.action == answer
        moved = ("move", Path("/in/a.mkv")) in fs.mutations
        assert moved is (answer == Action.OVERWRITE)

    async def test_no_conflict_means_no_prompt(self) -> None:
        resolver = CountingResolver(Action.SKIP)
        [result] = await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv")], resolver, False, RecordingFileSystem()
        )
        assert resolver.calls == []
        assert result.action == Action.MOVE

    @pytest.mark.parametrize("answer", [Action.MOVE, "keep", None])
    async def test_invalid_answer_is_skipped_with_error(self, answer: object) -> None:
        fs = RecordingFileSystem(existing={Path("/lib/a.mkv"), Path("/lib/b.mkv")})
        resolver = CountingResolver(answer)  # type: ignore[arg-type]
        results = await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv"), _planned("/in/c.mkv", "/lib/c.mkv")],
            resolver,
            False,
            fs,
        )
        assert [r.action for r in results] == [Action.SKIP, Action.MOVE]
        assert results[0].errors[0].startswith("Invalid conflict answer")
        assert ("move", Path("/in/a.mkv")) not in fs.mutations
        assert ("move", Path("/in/c.mkv")) in fs.mutations

    async def test_resolver_failure_is_skipped_with_error(self) -> None:
        async def broken(original: Path, planned: Path) -> Action:
            raise EOFError("no input")

        fs = RecordingFileSystem(existing={Path("/lib/a.mkv")})
        results = await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv"), _planned("/in/c.mkv", "/lib/c.mkv")],
            broken,
            False,
            fs,
        )
        assert [r.action for r in results] == [Action.SKIP, Action.MOVE]
        assert results[0].errors == ["Conflict resolver failed: no input"]


@pytest.mark.asyncio
async def test_unmovable_and_in_place_files_are_skipped() -> None:
    fs = RecordingFileSystem()
    plan = [
        _planned("/in/a.mkv", "/in/a.mkv", movable=False),
        _planned("/lib/b.mkv", "/lib/b.mkv"),
    ]
    results = await execute_plan(plan, always_overwrite, False, fs)
    assert [r.action for r in results] == [Action.SKIP, Action.SKIP]
    assert not any(kind == "move" for kind, _ in fs.mutations)


@pytest.mark.asyncio
async def test_move_failure_is_isolated() -> None:
    fs = RecordingFileSystem()
    fs.fail_on.add(Path("/in/a.mkv"))
    plan = [_planned("/in/a.mkv", "/lib/a.mkv"), _planned("/in/b.mkv", "/lib/b.mkv")]

    first, second = await execute_plan(plan, always_skip, False, fs)

    assert first.action == Action.SKIP
    assert first.planned_path == Path("/lib/a.mkv")
    assert first.errors and first.errors[0].startswith("Move failed")
    assert second.action == Action.MOVE
    assert second.errors == []


@pytest.mark.asyncio
async def test_unwritable_root_fails_before_any_move() -> None:
    fs = RecordingFileSystem(writable=False)
    with pytest.raises(DestinationRootError) as excinfo:
        await execute_plan(
            [_planned("/in/a.mkv", "/lib/a.mkv")], always_skip, False, fs, roots=[Path("/lib")]
        )
    assert excinfo.value.root == Path("/lib")
    assert not any(kind == "move" for kind, _ in fs.mutations)


@pytest.mark.asyncio
async def test_moves_are_logged_in_order(tmp_path: Path) -> None:
    sources = []
    for name in ("a.mkv", "b.mkv"):
        src = tmp_path / "in" / name
        src.parent.mkdir(exist_ok=True)
        src.write_text(name)
        sources.append(src)
    plan = [
        _planned(str(src), str(tmp_path / "lib" / "Movie" / src.name)) for src in sources
    ]
    move_log = MoveLog()

    results = await execute_plan(
        plan,
        always_skip,
        False,
        LocalFileSystem(),
        move_log,
        roots=[tmp_path / "lib"],
    )

    assert [r.action for r in results] == [Action.MOVE, Action.MOVE]
    assert (tmp_path / "lib" / "Movie" / "b.mkv").read_text() == "b.mkv"
    entries = await move_log.entries()
    assert [(e.original_path, e.new_path) for e in entries] == [
        (item.media_file.path, item.planned_path) for item in plan
    ]
    move_log.close()
