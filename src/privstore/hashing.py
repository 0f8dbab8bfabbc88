"""Content digests for stored records.

A record's digest is a cryptographic hash of its canonical encoding, written
as unpadded URL-safe base64. Equal records always share a digest, so storing
the same content twice lands in the same backend slot.
"""

import base64
import hashlib
import re
from typing import Callable, TypeVar

from .codec import Codec
from .constants import DIGEST_DOMAIN
from .errors import InvalidDigestError

T = TypeVar("T")

DigestFunction = Callable[[T], str]

SUPPORTED_ALGORITHMS = ("sha256", "blake2b")

# 32-byte hash -> 43 base64url chars without padding
DIGEST_LENGTH = 43

_PRINTABLE_KEY = re.compile(r"^[\x21-\x7e]+$")


def _new_hash(algorithm: str):
    if algorithm == "sha256":
        return hashlib.sha256()
    if algorithm == "blake2b":
        return hashlib.blake2b(digest_size=32)
    raise ValueError(f"Unsupported digest algorithm: {algorithm!r}")


def encode_digest(raw: bytes) -> str:
    """Encode raw hash bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def compute_content_digest(content: bytes, content_type: str, algorithm: str = "sha256") -> str:
    """Compute the digest of encoded record bytes.

    Uses domain separation (null bytes) so identical bytes under different
    content types never produce the same digest.

    Args:
        content: Canonical encoding of a record
        content_type: Content type the bytes were encoded with
        algorithm: "sha256" or "blake2b"

    Returns:
        43-character URL-safe digest
    """
    h = _new_hash(algorithm)
    h.update(b"\x00" + DIGEST_DOMAIN + b"\x00")
    h.update(content_type.encode("utf-8"))
    h.update(b"\x00")
    h.update(content)
    return encode_digest(h.digest())


def content_digester(content_type: str, algorithm: str = "sha256") -> Callable[[bytes], str]:
    """Build a digest function over already-encoded record bytes."""
    _new_hash(algorithm)  # fail fast on unknown algorithms

    def digest_content(content: bytes) -> str:
        return compute_content_digest(content, content_type, algorithm)

    return digest_content


def make_digest_function(codec: Codec, algorithm: str = "sha256") -> DigestFunction:
    """Build a digest function that hashes records through ``codec``.

    The returned function is pure: no I/O and no mutation of the record.
    """
    digest_content = content_digester(codec.content_type.value, algorithm)

    def generate_digest(record) -> str:
        return digest_content(codec.encode(record))

    return generate_digest


def validate_digest(digest: str) -> str:
    """Check that a digest can be used as a backend key.

    Keys supplied by callers (e.g. to ``update``) need not come from
    ``make_digest_function``, they only need to be printable text.

    Raises:
        InvalidDigestError: If the digest is empty or contains whitespace
            or non-printable characters
    """
    if not isinstance(digest, str):
        raise InvalidDigestError(repr(digest), "digest must be a string")
    if not digest:
        raise InvalidDigestError(digest, "digest is empty")
    if not _PRINTABLE_KEY.fullmatch(digest):
        raise InvalidDigestError(digest, "digest must be printable ASCII without whitespace")
    return digest


def digest_to_key(digest: str) -> bytes:
    """Backend key for a digest (UTF-8 bytes)."""
    return validate_digest(digest).encode("utf-8")


__all__ = [
    "DigestFunction",
    "SUPPORTED_ALGORITHMS",
    "compute_content_digest",
    "content_digester",
    "digest_to_key",
    "encode_digest",
    "make_digest_function",
    "validate_digest",
]
