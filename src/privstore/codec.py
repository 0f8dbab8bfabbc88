"""Record codecs.

Records are pydantic models. They are dumped to plain JSON-compatible data
(using field aliases) and then encoded deterministically under a named
content type, so equal records always produce identical bytes.
"""

import io
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Type, TypeVar

import cbor2
from pydantic import BaseModel, ValidationError

from .errors import DeserializationError, SerializationError, UnsupportedContentTypeError

T = TypeVar("T", bound=BaseModel)


class ContentType(str, Enum):
    """Content types understood by the codec."""
    CBOR = "application/cbor"
    JSON = "application/json"


def _coerce_content_type(content_type) -> ContentType:
    try:
        return ContentType(content_type)
    except ValueError:
        raise UnsupportedContentTypeError(str(content_type)) from None


def _encode(content_type: ContentType, data: Any) -> bytes:
    if content_type is ContentType.CBOR:
        # Canonical mode sorts map keys and picks the shortest encodings
        return cbor2.dumps(data, canonical=True)
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _decode(content_type: ContentType, raw: bytes) -> Any:
    if content_type is ContentType.CBOR:
        fp = io.BytesIO(raw)
        data = cbor2.CBORDecoder(fp).decode()
        if fp.tell() != len(raw):
            raise ValueError(f"{len(raw) - fp.tell()} trailing byte(s) after the record")
        return data
    return json.loads(raw.decode("utf-8"))


def serialize(content_type, record: BaseModel) -> bytes:
    """Serialize a record to bytes.

    Args:
        content_type: ContentType or its string value
        record: Pydantic model instance

    Returns:
        Deterministic encoding of the record

    Raises:
        UnsupportedContentTypeError: If the content type is unknown
        SerializationError: If the record cannot be encoded
    """
    ctype = _coerce_content_type(content_type)
    if not isinstance(record, BaseModel):
        raise SerializationError(ctype.value, f"expected a model, got {type(record).__name__}")
    try:
        data = record.model_dump(mode="json", by_alias=True)
        return _encode(ctype, data)
    except (ValueError, TypeError, cbor2.CBOREncodeError) as e:
        raise SerializationError(ctype.value, str(e)) from e


def deserialize(content_type, target_type: Type[T], raw: bytes) -> T:
    """Deserialize bytes into a record of ``target_type``.

    Raises:
        UnsupportedContentTypeError: If the content type is unknown
        DeserializationError: If the bytes are not a valid encoding of the target
    """
    ctype = _coerce_content_type(content_type)
    try:
        data = _decode(ctype, bytes(raw))
    except (ValueError, TypeError, RecursionError, cbor2.CBORDecodeError) as e:
        raise DeserializationError(ctype.value, target_type.__name__, str(e)) from e

    if not isinstance(data, dict):
        raise DeserializationError(
            ctype.value, target_type.__name__, f"expected a map, got {type(data).__name__}"
        )
    try:
        return target_type.model_validate(data)
    except ValidationError as e:
        raise DeserializationError(
            ctype.value, target_type.__name__, f"{e.error_count()} validation error(s)"
        ) from e


@dataclass(frozen=True)
class Codec(Generic[T]):
    """Serializer bound to one content type and one record type."""

    content_type: ContentType
    target_type: Type[T]

    def __post_init__(self):
        object.__setattr__(self, "content_type", _coerce_content_type(self.content_type))

    def encode(self, record: T) -> bytes:
        if not isinstance(record, self.target_type):
            raise SerializationError(
                self.content_type.value,
                f"expected {self.target_type.__name__}, got {type(record).__name__}",
            )
        return serialize(self.content_type, record)

    def decode(self, raw: bytes) -> T:
        return deserialize(self.content_type, self.target_type, raw)


__all__ = ["ContentType", "Codec", "serialize", "deserialize"]
