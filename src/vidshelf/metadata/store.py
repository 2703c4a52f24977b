"""SQLite-backed store for canonical movie, series and episode records.

The store is the resolver's first stop: records are written on the first
successful provider fetch and read on every later resolution, so a library is
only ever looked up once.

All blocking SQLite work runs in ``asyncio.to_thread``. Misses return ``None``;
any ``sqlite3.Error`` is re-raised as :class:`vidshelf.errors.StoreError`.
"""

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from vidshelf.errors import StoreError
from vidshelf.metadata.models import EpisodeRecord, MovieRecord, SeriesRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

CREATE_TABLES_SQL = """
    CREATE TABLE IF NOT EXISTS movies (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        year INTEGER,
        plot TEXT,
        genre TEXT,
        director TEXT,
        actors TEXT,
        rating TEXT,
        runtime TEXT
    );
    CREATE TABLE IF NOT EXISTS tv_shows (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        year INTEGER,
        plot TEXT,
        genre TEXT,
        director TEXT,
        actors TEXT,
        rating TEXT,
        total_seasons INTEGER
    );
    CREATE TABLE IF NOT EXISTS tv_episodes (
        series_id TEXT NOT NULL,
        season INTEGER NOT NULL,
        episode INTEGER NOT NULL,
        id TEXT,
        title TEXT NOT NULL,
        year INTEGER,
        plot TEXT,
        genre TEXT,
        director TEXT,
        actors TEXT,
        rating TEXT,
        released TEXT,
        PRIMARY KEY (series_id, season, episode)
    );
    """

_MOVIE_COLUMNS = tuple(f for f in MovieRecord.model_fields if f != "kind")
_SERIES_COLUMNS = tuple(f for f in SeriesRecord.model_fields if f != "kind")
_EPISODE_COLUMNS = tuple(f for f in EpisodeRecord.model_fields if f != "kind")


def _upsert_sql(table: str, columns: tuple[str, ...]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _row_values(record: Any, columns: tuple[str, ...]) -> tuple[Any, ...]:
    data = record.model_dump()
    return tuple(data[column] for column in columns)


class MetadataStore:
    """Local store of canonical records keyed by provider id.

    Args:
        db_path: SQLite database file. Defaults to an in-memory database that
            lives as long as the store instance.

    The store holds one connection for its lifetime. It assumes a single owning
    process and performs no locking beyond serialising its own calls.
    """

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.executescript(CREATE_TABLES_SQL)
            self._conn = conn
        return self._conn

    async def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run *fn* against the connection in a worker thread."""

        def db_logic() -> T:
            with self._lock:
                try:
                    conn = self._connect()
                    result = fn(conn)
                    conn.commit()
                    return result
                except sqlite3.Error as exc:
                    raise StoreError(f"{operation} failed: {exc}") from exc

        return await asyncio.to_thread(db_logic)

    def close(self) -> None:
        """Close the underlying connection, if one was opened."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    async def get_movie(self, movie_id: str) -> MovieRecord | None:
        """Return the movie stored under *movie_id*, or None."""

        def query(conn: sqlite3.Connection) -> MovieRecord | None:
            row = conn.execute("SELECT * FROM movies WHERE id=?", (movie_id,)).fetchone()
            return MovieRecord(**dict(row)) if row else None

        return await self._run("get_movie", query)

    async def get_series(self, series_id: str) -> SeriesRecord | None:
        """Return the series stored under *series_id*, or None."""

        def query(conn: sqlite3.Connection) -> SeriesRecord | None:
            row = conn.execute(
                "SELECT * FROM tv_shows WHERE id=?", (series_id,)
            ).fetchone()
            return SeriesRecord(**dict(row)) if row else None

        return await self._run("get_series", query)

    async def get_episode(
        self, series_id: str, season: int, episode: int
    ) -> EpisodeRecord | None:
        """Return one episode of *series_id*, or None."""

        def query(conn: sqlite3.Connection) -> EpisodeRecord | None:
            row = conn.execute(
                "SELECT * FROM tv_episodes "
                "WHERE series_id=? AND season=? AND episode=?",
                (series_id, season, episode),
            ).fetchone()
            return EpisodeRecord(**dict(row)) if row else None

        return await self._run("get_episode", query)

    async def put_movie(self, record: MovieRecord) -> None:
        """Insert or replace a movie record."""
        sql = _upsert_sql("movies", _MOVIE_COLUMNS)
        await self._run(
            "put_movie",
            lambda conn: conn.execute(sql, _row_values(record, _MOVIE_COLUMNS)),
        )
        logger.debug("Stored movie %s (%s)", record.id, record.title)

    async def put_series(self, record: SeriesRecord) -> None:
        """Insert or replace a series record."""
        sql = _upsert_sql("tv_shows", _SERIES_COLUMNS)
        await self._run(
            "put_series",
            lambda conn: conn.execute(sql, _row_values(record, _SERIES_COLUMNS)),
        )
        logger.debug("Stored series %s (%s)", record.id, record.title)

    async def put_episode_batch(self, records: list[EpisodeRecord]) -> None:
        """Insert or replace many episode records in one transaction."""
        if not records:
            return
        sql = _upsert_sql("tv_episodes", _EPISODE_COLUMNS)
        rows = [_row_values(record, _EPISODE_COLUMNS) for record in records]
        await self._run("put_episode_batch", lambda conn: conn.executemany(sql, rows))
        logger.debug("Stored %d episodes", len(records))

    async def all_movies(self) -> list[MovieRecord]:
        """Return every stored movie, ordered by title."""
        return await self._run(
            "all_movies",
            lambda conn: [
                MovieRecord(**dict(row))
                for row in conn.execute("SELECT * FROM movies ORDER BY title, year")
            ],
        )

    async def all_series(self) -> list[SeriesRecord]:
        """Return every stored series, ordered by title."""
        return await self._run(
            "all_series",
            lambda conn: [
                SeriesRecord(**dict(row))
                for row in conn.execute("SELECT * FROM tv_shows ORDER BY title, year")
            ],
        )

    async def all_episodes(self) -> list[EpisodeRecord]:
        """Return every stored episode, ordered by series, season and episode."""
        return await self._run(
            "all_episodes",
            lambda conn: [
                EpisodeRecord(**dict(row))
                for row in conn.execute(
                    "SELECT * FROM tv_episodes ORDER BY series_id, season, episode"
                )
            ],
        )
