"""Append-only SQLite log of completed file moves.

Every successful move in apply mode is recorded as ``(original, new, moved_at)``
in execution order, so external tooling can audit or revert a run.
"""

import asyncio
import sqlite3
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from vidshelf.errors import StoreError

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS file_moves (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        original_path TEXT NOT NULL,
        new_path TEXT NOT NULL,
        moved_at REAL NOT NULL
    );
    """


@dataclass(frozen=True)
class MoveEntry:
    """One recorded move."""

    original_path: Path
    new_path: Path
    moved_at: float


class MoveLog:
    """Move log backed by an SQLite table.

    Args:
        db_path: Database file; ``:memory:`` keeps the log for the instance's
            lifetime only. May share a file with :class:`MetadataStore`.
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
            conn.execute(CREATE_TABLE_SQL)
            self._conn = conn
        return self._conn

    async def record(self, original: Path, new: Path) -> None:
        """Append one move to the log.

        Raises:
            StoreError: If the row cannot be written.
        """

        def db_set() -> None:
            with self._lock:
                try:
                    conn = self._connect()
                    conn.execute(
                        "INSERT INTO file_moves (original_path, new_path, moved_at) "
                        "VALUES (?, ?, ?)",
                        (str(original), str(new), time.time()),
                    )
                    conn.commit()
                except sqlite3.Error as exc:
                    raise StoreError(f"Could not record move {original}: {exc}") from exc

        await asyncio.to_thread(db_set)

    async def entries(self) -> List[MoveEntry]:
        """Return every recorded move, oldest first."""

        def db_logic() -> List[MoveEntry]:
            with self._lock:
                try:
                    rows = self._connect().execute(
                        "SELECT original_path, new_path, moved_at FROM file_moves "
                        "ORDER BY seq"
                    ).fetchall()
                except sqlite3.Error as exc:
                    raise StoreError(f"Could not read move log: {exc}") from exc
            return [MoveEntry(Path(o), Path(n), float(t)) for o, n, t in rows]

        return await asyncio.to_thread(db_logic)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
