"""Custom exceptions for privstore.

This module defines typed exceptions so callers can tell a codec problem
from a backend problem. Absence of a record is never an exception.
"""


class PrivStoreError(RuntimeError):
    """Base class for all privstore errors."""
    pass


# Codec Errors
class CodecError(PrivStoreError):
    """Base class for serialization errors."""
    pass


class SerializationError(CodecError):
    """Record could not be converted to bytes."""

    def __init__(self, content_type: str, reason: str):
        self.content_type = content_type
        self.reason = reason
        super().__init__(f"Cannot serialize record as {content_type}: {reason}")


class DeserializationError(CodecError):
    """Stored bytes could not be converted back to a record."""

    def __init__(self, content_type: str, target: str, reason: str):
        self.content_type = content_type
        self.target = target
        self.reason = reason
        super().__init__(
            f"Cannot decode {content_type} bytes as {target}: {reason}. "
            f"The stored entry may be corrupted or written by an incompatible version."
        )


class UnsupportedContentTypeError(CodecError):
    """No codec registered for the content type."""

    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(f"Unsupported content type: {content_type!r}")


# Storage Errors
class StorageError(PrivStoreError):
    """Base class for storage-related errors."""
    pass


class BackendError(StorageError):
    """Key-value backend failed to open, read or write."""

    def __init__(self, operation: str, key: bytes, reason: str):
        self.operation = operation
        self.key = key
        self.reason = reason
        if key:
            key_display = key[:12].decode("utf-8", errors="replace")
            super().__init__(f"Backend {operation} failed for key {key_display}...: {reason}")
        else:
            super().__init__(f"Backend {operation} failed: {reason}")


class InvalidDigestError(StorageError):
    """Digest cannot be used as a storage key."""

    def __init__(self, digest: str, reason: str):
        self.digest = digest
        super().__init__(f"Invalid digest {digest!r}: {reason}")


# Configuration Errors
class ConfigError(PrivStoreError):
    """Base class for configuration errors."""
    pass


class InvalidTransportSettingsError(ConfigError):
    """Transport settings do not select exactly one listener."""

    def __init__(self, configured: list):
        self.configured = configured
        if configured:
            detail = f"got {', '.join(configured)}"
        else:
            detail = "none configured"
        super().__init__(
            "Exactly one of domain_socket_path, http_port or https_port must be set "
            f"({detail})."
        )
