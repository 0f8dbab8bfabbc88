"""Filesystem key-value backend.

Values are stored one file per key with sharding:
    <base_dir>/ab/cd/<hex(key)>

Key bytes are hex encoded so any key maps to a safe file name. Writes go
through a temp file in the target directory, are fsynced and then atomically
promoted with os.replace while holding a per-key portalocker lock. Blocking
I/O runs on a thread pool owned by the store.
"""

from __future__ import annotations
import asyncio
import contextlib
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import portalocker

from ..errors import BackendError

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 30


def _fsync_dir(path: Path) -> None:
    """Fsync a directory so a rename is durable.

    Best effort: Windows and some filesystems don't support directory fsync.
    """
    try:
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY
        fd = os.open(str(path), flags)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        logger.debug("Directory fsync not supported for %s", path)


class FilesystemKeyValueStore:
    """
    Local filesystem store.

    Safe for concurrent writers across threads and processes: every write
    to a key holds that key's lock file.
    """

    def __init__(self, base_dir: Path, max_workers: int = 4):
        """
        Initialize filesystem store.

        Args:
            base_dir: Base directory for stored values
            max_workers: Size of the I/O thread pool

        Raises:
            BackendError: If base_dir cannot be created
        """
        self.base_dir = Path(base_dir)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create store directory %s: %s", self.base_dir, e)
            raise BackendError("open", b"", f"{self.base_dir}: {e}") from e
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="privstore-fs"
        )

    def path_for(self, key: bytes) -> Path:
        """
        Get the file path for a key.

        Args:
            key: Backend key

        Returns:
            Sharded path where the value is stored
        """
        if not key:
            raise ValueError("key must not be empty")
        name = bytes(key).hex()
        return self.base_dir / name[:2] / name[2:4] / name

    async def put(self, key: bytes, value: bytes) -> None:
        await self._run("put", key, self._write, key, bytes(value))

    async def get(self, key: bytes) -> Optional[bytes]:
        return await self._run("get", key, self._read, key)

    async def close(self) -> None:
        self._executor.shutdown(wait=True)

    async def _run(self, operation: str, key: bytes, fn, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, fn, *args)
        except (OSError, portalocker.LockException) as e:
            logger.warning("Filesystem %s failed for %s: %s", operation, self.base_dir, e)
            raise BackendError(operation, bytes(key), str(e)) from e

    def _read(self, key: bytes) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, key: bytes, value: bytes) -> None:
        dest = self.path_for(key)
        dest.parent.mkdir(parents=True, exist_ok=True)

        # Lock files persist next to the values
        lock_path = dest.with_suffix(".lock")
        with portalocker.Lock(str(lock_path), "w", timeout=LOCK_TIMEOUT_SECONDS):
            with tempfile.NamedTemporaryFile(
                prefix=".kv-", dir=str(dest.parent), delete=False
            ) as tmp:
                tmppath = Path(tmp.name)
                try:
                    tmp.write(value)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                except OSError:
                    tmp.close()
                    with contextlib.suppress(OSError):
                        tmppath.unlink()
                    raise
            try:
                os.replace(str(tmppath), str(dest))
            except OSError:
                with contextlib.suppress(OSError):
                    tmppath.unlink()
                raise
            _fsync_dir(dest.parent)
        logger.debug("Stored %d bytes at %s", len(value), dest)
