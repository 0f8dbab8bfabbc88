"""Shared test fixtures and utilities."""

import pytest

from privstore.codec import Codec, ContentType
from privstore.content_store import ContentAddressedStorage, transaction_storage
from privstore.models import TransactionPair
from tests.store_utils import RecordingStore


@pytest.fixture
def store():
    """Recording in-memory backend."""
    return RecordingStore()


@pytest.fixture
def storage(store) -> ContentAddressedStorage:
    """TransactionPair storage over the recording backend (CBOR)."""
    return transaction_storage(store)


@pytest.fixture
def cbor_codec() -> Codec:
    return Codec(ContentType.CBOR, TransactionPair)


@pytest.fixture
def make_pair():
    """Factory fixture for TransactionPair records."""
    def _make(payload: str = "deadbeef", sender: str = "A", recipient: str = "B") -> TransactionPair:
        return TransactionPair.model_validate({"from": sender, "to": recipient, "payload": payload})
    return _make
