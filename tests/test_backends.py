"""Tests for the key-value backends."""

import asyncio
import os
import threading
from unittest.mock import patch

import pytest

from privstore.errors import BackendError
from privstore.storage.base import KeyValueStore
from privstore.storage.fs import FilesystemKeyValueStore
from privstore.storage.memory import MemoryKeyValueStore
from privstore.storage.sqlite import SqliteKeyValueStore


def run(coro):
    return asyncio.run(coro)


@pytest.fixture(params=["memory", "fs", "sqlite"])
def backend(request, tmp_path):
    """Each local backend behind the same protocol."""
    if request.param == "memory":
        store = MemoryKeyValueStore()
    elif request.param == "fs":
        store = FilesystemKeyValueStore(tmp_path / "kv")
    else:
        store = SqliteKeyValueStore(tmp_path / "kv.sqlite3")
    yield store
    run(store.close())


class TestBackendContract:
    """Behaviour every backend shares."""

    def test_satisfies_protocol(self, backend):
        assert isinstance(backend, KeyValueStore)

    def test_missing_key_is_none(self, backend):
        assert run(backend.get(b"missing")) is None

    def test_put_then_get(self, backend):
        async def scenario():
            await backend.put(b"key", b"\x00\x01value")
            return await backend.get(b"key")

        assert run(scenario()) == b"\x00\x01value"

    def test_last_write_wins(self, backend):
        async def scenario():
            await backend.put(b"key", b"first")
            await backend.put(b"key", b"second")
            return await backend.get(b"key")

        assert run(scenario()) == b"second"

    def test_keys_are_independent(self, backend):
        async def scenario():
            await backend.put(b"a", b"1")
            await backend.put(b"b", b"2")
            return await backend.get(b"a"), await backend.get(b"b")

        assert run(scenario()) == (b"1", b"2")

    def test_empty_value(self, backend):
        async def scenario():
            await backend.put(b"empty", b"")
            return await backend.get(b"empty")

        assert run(scenario()) == b""

    def test_concurrent_writers(self, backend):
        async def scenario():
            await asyncio.gather(*(backend.put(b"k%d" % i, b"v%d" % i) for i in range(20)))
            return await asyncio.gather(*(backend.get(b"k%d" % i) for i in range(20)))

        assert run(scenario()) == [b"v%d" % i for i in range(20)]


class TestFilesystemStore:
    """Filesystem-specific behaviour."""

    def test_init_creates_directory(self, tmp_path):
        base = tmp_path / "nested" / "kv"
        store = FilesystemKeyValueStore(base)
        assert base.is_dir()
        run(store.close())

    def test_unusable_base_dir_becomes_backend_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(BackendError) as exc_info:
            FilesystemKeyValueStore(blocker)
        assert exc_info.value.operation == "open"

    def test_path_sharding(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path)
        path = store.path_for(b"\xab\xcd\xef")
        assert path.parent.parent.name == "ab"
        assert path.parent.name == "cd"
        assert path.name == "abcdef"
        run(store.close())

    def test_unsafe_key_bytes_stay_inside_base(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path / "kv")
        path = store.path_for(b"../../etc/passwd")
        assert (tmp_path / "kv") in path.parents
        run(store.close())

    def test_empty_key_rejected(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path)
        with pytest.raises(ValueError):
            store.path_for(b"")
        run(store.close())

    def test_no_temp_files_left(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path)
        run(store.put(b"key", b"value"))
        leftovers = [p for p in tmp_path.rglob(".kv-*")]
        assert leftovers == []
        run(store.close())

    def test_persists_across_instances(self, tmp_path):
        first = FilesystemKeyValueStore(tmp_path)
        run(first.put(b"key", b"value"))
        run(first.close())
        second = FilesystemKeyValueStore(tmp_path)
        assert run(second.get(b"key")) == b"value"
        run(second.close())

    def test_write_failure_becomes_backend_error(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path)
        with patch("privstore.storage.fs.os.replace", side_effect=OSError("read-only fs")):
            with pytest.raises(BackendError, match="read-only fs"):
                run(store.put(b"key", b"value"))
        assert run(store.get(b"key")) is None
        run(store.close())

    def test_read_failure_becomes_backend_error(self, tmp_path):
        store = FilesystemKeyValueStore(tmp_path)
        target = store.path_for(b"key")
        target.mkdir(parents=True)  # a directory where a file is expected
        with pytest.raises(BackendError) as exc_info:
            run(store.get(b"key"))
        assert exc_info.value.operation == "get"
        run(store.close())

    def test_writes_from_threads(self, tmp_path):
        """Separate event loops in separate threads share one directory."""
        errors = []

        def writer(n):
            store = FilesystemKeyValueStore(tmp_path)
            try:
                for i in range(5):
                    run(store.put(b"shared", b"writer-%d-%d" % (n, i)))
            except Exception as e:  # pragma: no cover - reported below
                errors.append(e)
            finally:
                run(store.close())

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        store = FilesystemKeyValueStore(tmp_path)
        assert run(store.get(b"shared")).startswith(b"writer-")
        run(store.close())


class TestSqliteStore:
    """SQLite-specific behaviour."""

    def test_persists_across_instances(self, tmp_path):
        db = tmp_path / "kv.sqlite3"
        run(SqliteKeyValueStore(db).put(b"key", b"value"))
        assert run(SqliteKeyValueStore(db).get(b"key")) == b"value"

    def test_creates_parent_directory(self, tmp_path):
        db = tmp_path / "nested" / "kv.sqlite3"
        SqliteKeyValueStore(db)
        assert db.exists()

    def test_unopenable_database_becomes_backend_error(self, tmp_path):
        """A directory where the database file should be."""
        with pytest.raises(BackendError, match="Backend open failed") as exc_info:
            SqliteKeyValueStore(tmp_path)
        assert exc_info.value.operation == "open"

    def test_database_error_becomes_backend_error(self, tmp_path):
        db = tmp_path / "kv.sqlite3"
        store = SqliteKeyValueStore(db)
        os.remove(db)
        db.write_bytes(b"this is not a database file " * 200)
        with pytest.raises(BackendError):
            run(store.get(b"key"))


class TestMemoryStore:
    """Memory-specific behaviour."""

    def test_values_are_copied(self):
        store = MemoryKeyValueStore()
        value = bytearray(b"abc")
        run(store.put(b"key", value))
        value[0] = ord("z")
        assert run(store.get(b"key")) == b"abc"

    def test_len_and_contains(self):
        store = MemoryKeyValueStore()
        run(store.put(b"key", b"v"))
        assert len(store) == 1
        assert b"key" in store
        assert b"other" not in store
