"""Content-addressed record storage.

ContentAddressedStorage composes a key-value backend, a codec and a digest
function into four operations:

    generate_digest(record) -> digest            (pure, synchronous)
    put(record)             -> awaitable digest
    get(digest)             -> awaitable record | None
    update(digest, record)  -> awaitable previous record | None

Every awaitable has three outcomes: a value, None for an absent record, or
an exception (codec, backend or digest error). Serialization happens at call
time, so an unencodable record raises before any backend call is issued.

update() reads the previous value and then schedules the write in the
background; it resolves as soon as the read completes. Writes are tracked
and drain() waits for them. Read-then-write is not atomic: concurrent
updates of one key race and the last write wins.
"""

import asyncio
import logging
from typing import Awaitable, Generic, Optional, Protocol, Set, TypeVar

from .codec import Codec, ContentType
from .hashing import DigestFunction, content_digester, digest_to_key
from .models import TransactionPair
from .storage.base import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Storage(Protocol[T]):
    """Interface the rest of the system depends on."""

    def generate_digest(self, record: T) -> str:
        ...

    def put(self, record: T) -> Awaitable[str]:
        ...

    def get(self, digest: str) -> Awaitable[Optional[T]]:
        ...

    def update(self, digest: str, record: T) -> Awaitable[Optional[T]]:
        ...


class ContentAddressedStorage(Generic[T]):
    """Stores records under a digest of their content.

    Args:
        store: Key-value backend
        codec: Codec for the record type
        digest_function: Digest strategy; defaults to hashing the codec's
            canonical encoding with ``algorithm``
        algorithm: Hash for the default digest, "sha256" or "blake2b"
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: Codec,
        digest_function: Optional[DigestFunction] = None,
        algorithm: str = "sha256",
    ):
        self.store = store
        self.codec = codec
        self.digest_function = digest_function
        self._digest_content = content_digester(codec.content_type.value, algorithm)
        self._pending: Set[asyncio.Task] = set()
        self._write_errors = []

    def generate_digest(self, record: T) -> str:
        if self.digest_function is not None:
            return self.digest_function(record)
        return self._digest_content(self.codec.encode(record))

    def put(self, record: T) -> Awaitable[str]:
        """Store a record under its digest.

        Raises SerializationError immediately if the record cannot be
        encoded; the returned awaitable resolves to the digest once the
        backend write completes.
        """
        data = self.codec.encode(record)
        if self.digest_function is not None:
            digest = self.digest_function(record)
        else:
            digest = self._digest_content(data)
        return self._put(digest, data)

    async def _put(self, digest: str, data: bytes) -> str:
        await self.store.put(digest_to_key(digest), data)
        logger.debug("Stored record %s (%d bytes)", digest[:12], len(data))
        return digest

    async def get(self, digest: str) -> Optional[T]:
        """Fetch the record stored under ``digest``.

        Returns None when nothing is stored. Raises DeserializationError when
        stored bytes do not decode; that is never reported as absence.
        """
        raw = await self.store.get(digest_to_key(digest))
        if raw is None:
            logger.debug("No record for %s", digest[:12])
            return None
        return self.codec.decode(raw)

    def update(self, digest: str, record: T) -> Awaitable[Optional[T]]:
        """Overwrite the record under ``digest`` and return the previous one.

        The key is the supplied digest, not the digest of the new record.
        Raises SerializationError immediately if the record cannot be
        encoded. The awaitable resolves with the previous record (or None)
        once the read completes; the write continues in the background.
        """
        key = digest_to_key(digest)
        data = self.codec.encode(record)
        return self._update(digest, key, data)

    async def _update(self, digest: str, key: bytes, data: bytes) -> Optional[T]:
        previous = await self.get(digest)
        task = asyncio.ensure_future(self.store.put(key, data))
        self._pending.add(task)
        task.add_done_callback(self._write_done)
        logger.debug("Scheduled overwrite of %s", digest[:12])
        return previous

    def _write_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background write failed: %s", exc)
            self._write_errors.append(exc)

    @property
    def pending_writes(self) -> int:
        """Number of background writes not yet finished."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all background writes.

        Raises:
            The first error raised by a background write since the last drain
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._write_errors:
            errors, self._write_errors = self._write_errors, []
            raise errors[0]

    async def aclose(self) -> None:
        """Drain pending writes, then close the backend."""
        try:
            await self.drain()
        finally:
            await self.store.close()

    async def __aenter__(self) -> "ContentAddressedStorage[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def transaction_storage(
    store: KeyValueStore,
    content_type: ContentType = ContentType.CBOR,
    algorithm: str = "sha256",
) -> ContentAddressedStorage[TransactionPair]:
    """Storage for TransactionPair records."""
    codec = Codec(content_type, TransactionPair)
    return ContentAddressedStorage(store, codec, algorithm=algorithm)
