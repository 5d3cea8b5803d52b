"""
Configuration for timecapsule.

Settings are read from a YAML file and may be overridden from the
environment:

    TIMECAPSULE_KEY   encryption key (takes precedence over the file)
    TIMECAPSULE_DB    database path

build_service() turns a Settings object into a wired CapsuleService.
Collaborators are constructed explicitly from these values; nothing is
kept in module globals.

Example settings file:

    db_path: timecapsule.db
    encryption_key: "<output of `timecapsule keygen`>"
    media:
      backend: local
      local_dir: ./media
"""

import os
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from timecapsule.crypto import CryptoBox
from timecapsule.errors import ConfigError
from timecapsule.media import (
    DEFAULT_FOLDER,
    DEFAULT_MAX_UPLOAD_BYTES,
    HttpMediaConfig,
    HttpMediaService,
    LocalMediaService,
    MediaService,
)
from timecapsule.service import CapsuleService, utc_now
from timecapsule.store import CapsuleDB

ENV_KEY = "TIMECAPSULE_KEY"
ENV_DB = "TIMECAPSULE_DB"


class MediaBackend(str, Enum):
    """Which media service to construct."""

    NONE = "none"
    LOCAL = "local"
    HTTP = "http"


class MediaSettings(BaseModel):
    """
    Media service settings.

    Attributes:
        backend: none, local or http
        base_url: Media API root (http backend)
        api_token: Bearer token for the media API (http backend)
        folder: Folder attachments are grouped under
        local_dir: Root directory for the local backend
        timeout_seconds: Request timeout (http backend)
        max_upload_bytes: Largest accepted attachment
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: MediaBackend = Field(default=MediaBackend.NONE)
    base_url: str | None = Field(default=None)
    api_token: str | None = Field(default=None)
    folder: str = Field(default=DEFAULT_FOLDER)
    local_dir: str = Field(default="media")
    timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)


class Settings(BaseModel):
    """
    Process-wide settings.

    Attributes:
        db_path: SQLite database path
        encryption_key: Fernet key used to seal content
        media: Media service settings
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    db_path: str = Field(default="timecapsule.db")
    encryption_key: str | None = Field(default=None)
    media: MediaSettings = Field(default_factory=MediaSettings)


# =============================================================================
# Loading
# =============================================================================


def _settings_from_data(data: object, source: str) -> Settings:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(setting=source, message=f"Settings in {source} must be a mapping")
    try:
        return Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(setting=source, message=f"Invalid settings in {source}: {e}") from e


def load_settings(path: Path | str) -> Settings:
    """
    Load settings from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or does not match the schema
    """
    path = Path(path)
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(setting=str(path), message=f"Cannot read settings file {path}: {e}") from e
    return _settings_from_data(data, str(path))


def load_settings_from_string(content: str) -> Settings:
    """Load settings from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(setting="<string>", message=f"Invalid settings YAML: {e}") from e
    return _settings_from_data(data, "<string>")


def apply_env_overrides(settings: Settings, environ: Mapping[str, str] | None = None) -> Settings:
    """Return settings with TIMECAPSULE_KEY / TIMECAPSULE_DB applied."""
    env = os.environ if environ is None else environ
    updates = {}
    if env.get(ENV_KEY):
        updates["encryption_key"] = env[ENV_KEY]
    if env.get(ENV_DB):
        updates["db_path"] = env[ENV_DB]
    return settings.model_copy(update=updates) if updates else settings


# =============================================================================
# Wiring
# =============================================================================


def build_media(settings: MediaSettings) -> MediaService | None:
    """Construct the configured media service, if any."""
    if settings.backend == MediaBackend.NONE:
        return None
    if settings.backend == MediaBackend.LOCAL:
        return LocalMediaService(
            root=settings.local_dir,
            folder=settings.folder,
            max_upload_bytes=settings.max_upload_bytes,
        )
    if not settings.base_url:
        raise ConfigError(
            setting="media.base_url",
            message="media.base_url is required for the http backend",
        )
    return HttpMediaService(
        HttpMediaConfig(
            base_url=settings.base_url,
            api_token=settings.api_token,
            folder=settings.folder,
            timeout_seconds=settings.timeout_seconds,
            max_upload_bytes=settings.max_upload_bytes,
        )
    )


def build_service(
    settings: Settings,
    clock: Callable[[], datetime] = utc_now,
) -> CapsuleService:
    """
    Wire a CapsuleService from settings.

    Raises:
        ConfigError: If no encryption key is configured or it is invalid
    """
    if not settings.encryption_key:
        raise ConfigError(
            setting="encryption_key",
            message="No encryption key configured",
            suggestion=f"Run `timecapsule keygen` and export {ENV_KEY}",
        )
    crypto = CryptoBox(settings.encryption_key)
    return CapsuleService(
        store=CapsuleDB(settings.db_path),
        crypto=crypto,
        media=build_media(settings.media),
        clock=clock,
    )
