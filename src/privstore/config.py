"""Configuration: backend policy, codec, digest and transport settings.

Loaded from a YAML file (privstore.yaml by default):

    storage:
      provider: fs
      location: /var/lib/privstore
    codec:
      content_type: application/cbor
    digest:
      algorithm: sha256
    transport:
      http_port: 8080
"""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .codec import ContentType
from .constants import CONFIG_ENV_VAR, CONFIG_FILE
from .errors import ConfigError, InvalidTransportSettingsError
from .hashing import SUPPORTED_ALGORITHMS
from .policy import BackendPolicy


class TransportMode(str, Enum):
    """How the service listens for connections."""
    UNIX = "unix"
    HTTP = "http"
    HTTPS = "https"


class TransportSettings(BaseModel):
    """Listener selection: exactly one of the three values is set."""

    domain_socket_path: Optional[str] = None
    http_port: Optional[int] = Field(default=None, ge=1, le=65535)
    https_port: Optional[int] = Field(default=None, ge=1, le=65535)

    @model_validator(mode="after")
    def validate_single_listener(self):
        configured = [
            name for name in ("domain_socket_path", "http_port", "https_port")
            if getattr(self, name) is not None
        ]
        if len(configured) != 1:
            raise InvalidTransportSettingsError(configured)
        return self

    @property
    def is_domain_socket(self) -> bool:
        return self.domain_socket_path is not None

    @property
    def is_http(self) -> bool:
        return self.http_port is not None

    @property
    def is_https(self) -> bool:
        return self.https_port is not None

    @property
    def mode(self) -> TransportMode:
        if self.is_domain_socket:
            return TransportMode.UNIX
        if self.is_https:
            return TransportMode.HTTPS
        return TransportMode.HTTP


class CodecConfig(BaseModel):
    content_type: ContentType = ContentType.CBOR


class DigestConfig(BaseModel):
    algorithm: str = "sha256"

    @model_validator(mode="after")
    def validate_algorithm(self):
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigError(
                f"Unsupported digest algorithm {self.algorithm!r}; "
                f"expected one of {', '.join(SUPPORTED_ALGORITHMS)}"
            )
        return self


class StoreConfig(BaseModel):
    """Complete privstore configuration."""

    storage: BackendPolicy = Field(default_factory=BackendPolicy)
    codec: CodecConfig = Field(default_factory=CodecConfig)
    digest: DigestConfig = Field(default_factory=DigestConfig)
    transport: Optional[TransportSettings] = None


def config_path(path: Optional[Path] = None) -> Path:
    """Resolve the config file: explicit path > $PRIVSTORE_CONFIG > ./privstore.yaml."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CONFIG_FILE


def _format_errors(error: ValidationError) -> str:
    parts: List[str] = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def load_config(path: Optional[Path] = None) -> StoreConfig:
    """Load configuration, falling back to defaults if the file is missing.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    cfg_path = config_path(path)
    if not cfg_path.exists():
        return StoreConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {cfg_path}")

    try:
        return StoreConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {cfg_path}: {_format_errors(e)}") from e


def save_config(config: StoreConfig, path: Optional[Path] = None) -> Path:
    """Save configuration atomically. Returns the path written."""
    cfg_path = config_path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(
        config.model_dump(mode="json", exclude_none=True),
        default_flow_style=False,
        sort_keys=False,
    )
    with tempfile.NamedTemporaryFile(
        "w", dir=str(cfg_path.parent), prefix=f".{cfg_path.name}.", delete=False
    ) as tmp:
        tmp.write(text)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, cfg_path)
    return cfg_path
