"""Backend policy: which key-value store holds the records."""

from pathlib import Path

import platformdirs
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import APP_AUTHOR, APP_NAME
from .errors import ConfigError

PROVIDERS = ("memory", "fs", "sqlite", "azure")


def default_data_dir() -> Path:
    """Platform-appropriate data directory for the filesystem backend."""
    return Path(platformdirs.user_data_dir(APP_NAME, APP_AUTHOR)) / "records"


class BackendPolicy(BaseModel):
    """
    Policy for determining WHERE records are stored.

    Providers:
    - "fs" (default): one file per key under ``location``
    - "sqlite": single database file at ``location``
    - "azure": blobs in container ``location``
    - "memory": process-local, nothing persisted
    """
    provider: str = "fs"            # "memory" | "fs" | "sqlite" | "azure"
    location: str = ""              # Directory, database file or container
    prefix: str = ""                # Optional key prefix (azure)
    max_workers: int = Field(default=4, ge=1)  # I/O threads (fs)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in PROVIDERS:
            raise ConfigError(f"Unknown storage provider {v!r}; expected one of {', '.join(PROVIDERS)}")
        return v

    @model_validator(mode="after")
    def validate_location(self):
        """Fill the default fs location; other persistent providers need one."""
        if self.provider == "fs" and not self.location:
            self.location = str(default_data_dir())
        if self.provider in ("sqlite", "azure") and not self.location:
            raise ConfigError(f"storage.location required for provider {self.provider!r}")
        return self
