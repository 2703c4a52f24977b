"""Tests for vidshelf.metadata.store.MetadataStore."""

from pathlib import Path

import pytest

from vidshelf.errors import StoreError
from vidshelf.metadata.models import EpisodeRecord, MovieRecord, SeriesRecord
from vidshelf.metadata.store import MetadataStore


@pytest.mark.asyncio
async def test_movie_round_trip() -> None:
    store = MetadataStore()
    record = MovieRecord(id="tt1375666", title="Inception", year=2010, rating="8.8")

    assert await store.get_movie("tt1375666") is None
    await store.put_movie(record)
    assert await store.get_movie("tt1375666") == record


@pytest.mark.asyncio
async def test_put_replaces_existing_record() -> None:
    store = MetadataStore()
    await store.put_series(SeriesRecord(id="tt0903747", title="breaking bad"))
    await store.put_series(SeriesRecord(id="tt0903747", title="Breaking Bad"))
    series = await store.get_series("tt0903747")
    assert series is not None and series.title == "Breaking Bad"


@pytest.mark.asyncio
async def test_episode_batch_and_prefixed_ids() -> None:
    store = MetadataStore()
    await store.put_episode_batch(
        [
            EpisodeRecord(series_id="tt0903747", season=5, episode=9, title="Blood Money"),
            EpisodeRecord(series_id="tmdb:1396", season=5, episode=9, title="Blood Money"),
        ]
    )
    assert await store.get_episode("tt0903747", 5, 9) is not None
    assert await store.get_episode("tmdb:1396", 5, 9) is not None
    assert await store.get_episode("1396", 5, 9) is None


@pytest.mark.asyncio
async def test_empty_batch_is_a_no_op() -> None:
    await MetadataStore().put_episode_batch([])


@pytest.mark.asyncio
async def test_file_store_persists_across_instances(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "vidshelf.db"
    first = MetadataStore(db_path)
    await first.put_movie(MovieRecord(id="tt0133093", title="The Matrix"))
    first.close()

    second = MetadataStore(db_path)
    movie = await second.get_movie("tt0133093")
    second.close()
    assert movie is not None and movie.title == "The Matrix"


@pytest.mark.asyncio
async def test_unusable_database_raises_store_error(tmp_path: Path) -> None:
    # A directory cannot be opened as a database file.
    store = MetadataStore(tmp_path)
    with pytest.raises(StoreError):
        await store.get_movie("tt0133093")


@pytest.mark.asyncio
async def test_listing_returns_sorted_contents() -> None:
    store = MetadataStore()
    await store.put_movie(MovieRecord(id="tt0133093", title="The Matrix", year=1999))
    await store.put_movie(MovieRecord(id="tt1160419", title="Dune", year=2021))
    await store.put_series(SeriesRecord(id="tt0903747", title="Breaking Bad"))
    await store.put_episode_batch(
        [
            EpisodeRecord(series_id="tt0903747", season=5, episode=10, title="Buried"),
            EpisodeRecord(series_id="tt0903747", season=5, episode=9, title="Blood Money"),
        ]
    )

    assert [m.title for m in await store.all_movies()] == ["Dune", "The Matrix"]
    assert [s.id for s in await store.all_series()] == ["tt0903747"]
    assert [e.episode for e in await store.all_episodes()] == [9, 10]


@pytest.mark.asyncio
async def test_listing_empty_store() -> None:
    store = MetadataStore()
    assert await store.all_movies() == []
    assert await store.all_series() == []
    assert await store.all_episodes() == []
