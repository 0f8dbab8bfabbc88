"""Record models stored by privstore.

A TransactionPair is the unit the storage layer persists: the two parties of
a private transaction and its (already encrypted) payload. The storage core
never looks inside a record; only the codec does.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HEX = re.compile(r"^(?:[0-9a-fA-F]{2})*$")


class TransactionPair(BaseModel):
    """Sender/recipient pair with an opaque hex payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sender: str = Field(alias="from", min_length=1)
    recipient: str = Field(alias="to", min_length=1)
    payload: str                           # hex, as produced upstream by the enclave

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, v: str) -> str:
        """Payload must be hex text of even length."""
        if not _HEX.fullmatch(v):
            raise ValueError("payload must be an even-length hex string")
        return v
