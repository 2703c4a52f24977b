"""Tests for the SQLite move log."""

from pathlib import Path

import pytest

from vidshelf.errors import StoreError
from vidshelf.fs.move_log import MoveLog
from vidshelf.metadata.models import MovieRecord
from vidshelf.metadata.store import MetadataStore


@pytest.mark.asyncio
async def test_entries_keep_execution_order() -> None:
    log = MoveLog()
    await log.record(Path("/in/b.mkv"), Path("/lib/B.mkv"))
    await log.record(Path("/in/a.mkv"), Path("/lib/A.mkv"))

    entries = await log.entries()

    assert [e.original_path for e in entries] == [Path("/in/b.mkv"), Path("/in/a.mkv")]
    assert entries[0].new_path == Path("/lib/B.mkv")
    assert entries[0].moved_at <= entries[1].moved_at
    log.close()


@pytest.mark.asyncio
async def test_shares_a_database_with_the_store(tmp_path: Path) -> None:
    db_path = tmp_path / "vidshelf.db"
    store = MetadataStore(db_path)
    log = MoveLog(db_path)

    await store.put_movie(MovieRecord(id="tt0133093", title="The Matrix"))
    await log.record(Path("/in/matrix.mkv"), Path("/lib/The Matrix.mkv"))
    log.close()

    reopened = MoveLog(db_path)
    assert len(await reopened.entries()) == 1
    assert await store.get_movie("tt0133093") is not None
    reopened.close()
    store.close()


@pytest.mark.asyncio
async def test_unusable_database_raises_store_error(tmp_path: Path) -> None:
    log = MoveLog(tmp_path)
    with pytest.raises(StoreError):
        await log.record(Path("/in/a.mkv"), Path("/lib/a.mkv"))
