"""
Media collaborators for timecapsule.

Attachments live outside the capsule store; capsules keep only the
MediaRef a backend returns.

Backends:
    - HttpMediaService: Remote media API over httpx
    - LocalMediaService: Files under a local directory
"""

from timecapsule.media.base import (
    DEFAULT_FOLDER,
    DEFAULT_MAX_UPLOAD_BYTES,
    EXTENSION_TYPES,
    MediaService,
    check_upload,
    media_type_for,
    public_id_for,
)
from timecapsule.media.http import HttpMediaConfig, HttpMediaService
from timecapsule.media.local import LocalMediaService

__all__ = [
    "DEFAULT_FOLDER",
    "DEFAULT_MAX_UPLOAD_BYTES",
    "EXTENSION_TYPES",
    "HttpMediaConfig",
    "HttpMediaService",
    "LocalMediaService",
    "MediaService",
    "check_upload",
    "media_type_for",
    "public_id_for",
]
