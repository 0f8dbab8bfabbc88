"""Factory for creating key-value store instances."""

import os
from pathlib import Path

from ..constants import AZURE_CONNECTION_ENV_VAR
from ..errors import ConfigError
from ..policy import BackendPolicy
from .base import KeyValueStore
from .fs import FilesystemKeyValueStore
from .memory import MemoryKeyValueStore
from .sqlite import SqliteKeyValueStore


def validate_azure_config(policy: BackendPolicy) -> None:
    """
    Early validation of Azure configuration.

    Args:
        policy: Backend policy to validate

    Raises:
        ConfigError: If configuration is invalid
    """
    if not policy.location:
        raise ConfigError("storage.location (container name) required for Azure blob storage")

    if AZURE_CONNECTION_ENV_VAR not in os.environ:
        raise ConfigError(
            f"Set {AZURE_CONNECTION_ENV_VAR} and storage.location "
            "for Azure blob storage"
        )


def make_key_value_store(policy: BackendPolicy) -> KeyValueStore:
    """
    Create a key-value store based on policy.

    Args:
        policy: Backend policy configuration

    Returns:
        KeyValueStore instance

    Raises:
        ConfigError: If configuration is invalid
    """
    if policy.provider == "memory":
        return MemoryKeyValueStore()

    if policy.provider == "fs":
        return FilesystemKeyValueStore(Path(policy.location), max_workers=policy.max_workers)

    if policy.provider == "sqlite":
        return SqliteKeyValueStore(Path(policy.location))

    if policy.provider == "azure":
        validate_azure_config(policy)
        from .azure import AzureKeyValueStore
        conn_str = os.environ[AZURE_CONNECTION_ENV_VAR]
        return AzureKeyValueStore(conn_str, policy.location, policy.prefix)

    raise ConfigError(f"Provider {policy.provider} not supported")
