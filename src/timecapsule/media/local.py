"""
Filesystem media backend.

Keeps attachments under a local directory, one file per upload named by a
random id. Useful for single-machine setups and the CLI.
"""

import uuid
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from timecapsule.errors import MediaError
from timecapsule.media.base import (
    DEFAULT_FOLDER,
    DEFAULT_MAX_UPLOAD_BYTES,
    MediaService,
    check_upload,
)
from timecapsule.schema import MediaRef


class LocalMediaService(MediaService):
    """MediaService that writes attachments to ``root/folder``."""

    def __init__(
        self,
        root: str | Path,
        folder: str = DEFAULT_FOLDER,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self.root = Path(root).resolve()
        self.folder = folder
        self.max_upload_bytes = max_upload_bytes

    @property
    def directory(self) -> Path:
        return self.root / self.folder

    def upload(self, data: bytes, filename: str) -> MediaRef:
        media_type = check_upload(data, filename, self.max_upload_bytes)
        suffix = PurePosixPath(filename).suffix.lower()
        target = self.directory / f"{uuid.uuid4().hex}{suffix}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise MediaError(
                operation="upload",
                underlying_error=str(e),
                url=target.as_uri(),
            ) from e
        return MediaRef(url=target.as_uri(), type=media_type)

    def release(self, ref: MediaRef) -> None:
        path = self._path_for(ref.url)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise MediaError(
                operation="release",
                underlying_error=str(e),
                url=ref.url,
            ) from e

    def _path_for(self, url: str) -> Path:
        """Resolve a file URL, refusing anything outside the media directory."""
        parsed = urlparse(url)
        path = Path(unquote(parsed.path)).resolve()
        if parsed.scheme != "file" or not path.is_relative_to(self.directory.resolve()):
            raise MediaError(
                operation="release",
                underlying_error="attachment is not managed by this media directory",
                url=url,
            )
        return path
