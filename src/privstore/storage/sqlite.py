"""SQLite key-value backend."""

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from ..errors import BackendError

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """Key-value store in a single SQLite table.

    Uses a fresh connection per operation, guarded by a lock, and runs the
    blocking calls in the event loop's default executor.
    """

    def __init__(self, db_path: Path):
        """Initialize store with database path.

        Args:
            db_path: Path to SQLite database file

        Raises:
            BackendError: If the database cannot be created or opened
        """
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as e:
            logger.warning("Cannot open SQLite database %s: %s", self.db_path, e)
            raise BackendError("open", b"", f"{self.db_path}: {e}") from e

    def _init_database(self):
        """Initialize SQLite schema."""
        with self._lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key BLOB PRIMARY KEY,
                        value BLOB NOT NULL
                    )
                """)
                conn.commit()
            finally:
                conn.close()

    async def put(self, key: bytes, value: bytes) -> None:
        await self._run("put", key, self._store, bytes(key), bytes(value))

    async def get(self, key: bytes) -> Optional[bytes]:
        return await self._run("get", key, self._lookup, bytes(key))

    async def close(self) -> None:
        pass

    async def _run(self, operation: str, key: bytes, fn, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except sqlite3.Error as e:
            logger.warning("SQLite %s failed for %s: %s", operation, self.db_path, e)
            raise BackendError(operation, bytes(key), str(e)) from e

    def _lookup(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
                return bytes(row[0]) if row else None
            finally:
                conn.close()

    def _store(self, key: bytes, value: bytes):
        with self._lock:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                    (key, value),
                )
                conn.commit()
            finally:
                conn.close()
