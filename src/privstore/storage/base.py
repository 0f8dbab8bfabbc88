"""Base protocol for key-value backend implementations."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Protocol for asynchronous byte-key -> byte-value backends.

    Implementations provide put/get/close. Writes replace any existing value
    (last write wins). Durability, retries and timeouts are the backend's
    concern; record encoding is the caller's.
    """

    async def put(self, key: bytes, value: bytes) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        Raises:
            BackendError: If the write fails
        """
        ...

    async def get(self, key: bytes) -> Optional[bytes]:
        """
        Read the value stored under ``key``.

        Returns:
            Stored bytes, or None if the key is absent. Absence is never
            reported as an exception.

        Raises:
            BackendError: If the read fails
        """
        ...

    async def close(self) -> None:
        """Release backend resources. The store must not be used afterwards."""
        ...
