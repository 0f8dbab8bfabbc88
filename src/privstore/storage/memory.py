"""In-memory key-value backend."""

import asyncio
from typing import Dict, Optional


class MemoryKeyValueStore:
    """
    Dict-backed store for tests and embedded use.

    Each operation yields to the event loop once so callers see the same
    scheduling behaviour as with an I/O backed store.
    """

    def __init__(self):
        self._data: Dict[bytes, bytes] = {}

    async def put(self, key: bytes, value: bytes) -> None:
        await asyncio.sleep(0)
        self._data[bytes(key)] = bytes(value)

    async def get(self, key: bytes) -> Optional[bytes]:
        await asyncio.sleep(0)
        return self._data.get(bytes(key))

    async def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: bytes) -> bool:
        return bytes(key) in self._data
