"""Content-addressed asynchronous storage for private transaction pairs."""

from .codec import Codec, ContentType, deserialize, serialize
from .config import StoreConfig, TransportMode, TransportSettings, load_config, save_config
from .constants import PRIVSTORE_VERSION
from .content_store import ContentAddressedStorage, Storage, transaction_storage
from .errors import (
    BackendError,
    ConfigError,
    DeserializationError,
    InvalidDigestError,
    PrivStoreError,
    SerializationError,
)
from .hashing import make_digest_function
from .models import TransactionPair
from .policy import BackendPolicy
from .storage import KeyValueStore, make_key_value_store

__version__ = PRIVSTORE_VERSION

__all__ = [
    "BackendError",
    "BackendPolicy",
    "Codec",
    "ConfigError",
    "ContentAddressedStorage",
    "ContentType",
    "DeserializationError",
    "InvalidDigestError",
    "KeyValueStore",
    "PrivStoreError",
    "SerializationError",
    "Storage",
    "StoreConfig",
    "TransactionPair",
    "TransportMode",
    "TransportSettings",
    "deserialize",
    "load_config",
    "make_digest_function",
    "make_key_value_store",
    "save_config",
    "serialize",
    "transaction_storage",
]
