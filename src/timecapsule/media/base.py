"""
Media service interface for timecapsule.

The media service keeps attachment bytes; capsules only hold the
MediaRef it hands back. Helpers here are shared by all backends.
"""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from urllib.parse import urlparse

from timecapsule.errors import ERROR_VALIDATION_MEDIA, ValidationError
from timecapsule.schema import MediaRef, MediaType

DEFAULT_FOLDER = "time-capsules"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB

# Accepted extensions and the media type they map to
EXTENSION_TYPES: dict[str, MediaType] = {
    ".jpeg": MediaType.IMAGE,
    ".jpg": MediaType.IMAGE,
    ".png": MediaType.IMAGE,
    ".gif": MediaType.IMAGE,
    ".mp4": MediaType.VIDEO,
    ".mp3": MediaType.AUDIO,
    ".pdf": MediaType.RAW,
    ".doc": MediaType.RAW,
    ".docx": MediaType.RAW,
}


def media_type_for(filename: str) -> MediaType:
    """
    Map a filename to its media type.

    Raises:
        ValidationError: If the extension is not supported
    """
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix not in EXTENSION_TYPES:
        raise ValidationError(
            message=f"Unsupported file type: {filename}",
            code=ERROR_VALIDATION_MEDIA,
            field_name="media",
            suggestion=f"Use one of: {', '.join(sorted(EXTENSION_TYPES))}",
        )
    return EXTENSION_TYPES[suffix]


def check_upload(data: bytes, filename: str, max_bytes: int) -> MediaType:
    """Validate an upload before it is sent anywhere and return its type."""
    media_type = media_type_for(filename)
    if not data:
        raise ValidationError(
            message="Uploaded file is empty",
            code=ERROR_VALIDATION_MEDIA,
            field_name="media",
        )
    if len(data) > max_bytes:
        raise ValidationError(
            message=f"File too large: {len(data)} > {max_bytes} bytes",
            code=ERROR_VALIDATION_MEDIA,
            field_name="media",
        )
    return media_type


def public_id_for(url: str, folder: str = DEFAULT_FOLDER) -> str:
    """
    Derive the service-side identifier of an attachment from its URL.

    The identifier is the last path segment without its extension,
    prefixed by the upload folder: ``.../abc123.png`` -> ``time-capsules/abc123``.
    """
    path = urlparse(url).path or url
    stem = PurePosixPath(path).stem
    return f"{folder}/{stem}" if folder else stem


class MediaService(ABC):
    """
    Abstract base class for attachment backends.

    Implementations raise MediaError (a CollaboratorError) on failure and
    ValidationError for rejected uploads.
    """

    @abstractmethod
    def upload(self, data: bytes, filename: str) -> MediaRef:
        """Store ``data`` and return a reference to it."""
        ...

    @abstractmethod
    def release(self, ref: MediaRef) -> None:
        """Delete the attachment behind ``ref``."""
        ...

    def close(self) -> None:
        """Release any held resources."""
