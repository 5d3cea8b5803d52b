"""
HTTP media service client.

Talks to a hosted media service over a small JSON API:

    POST /upload   multipart "file" + "folder"  -> {"url": ..., "type": ...}
    POST /destroy  {"public_id": ...}           -> 2xx on success

The client is built from explicit configuration; there is no module-level
client or credential.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from timecapsule.errors import MediaError
from timecapsule.media.base import (
    DEFAULT_FOLDER,
    DEFAULT_MAX_UPLOAD_BYTES,
    MediaService,
    check_upload,
    public_id_for,
)
from timecapsule.schema import MediaRef, MediaType

logger = logging.getLogger("timecapsule.media.http")


@dataclass
class HttpMediaConfig:
    """Connection settings for HttpMediaService."""

    base_url: str
    api_token: str | None = None
    folder: str = DEFAULT_FOLDER
    timeout_seconds: float = 30.0
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES


class HttpMediaService(MediaService):
    """
    MediaService backed by a remote HTTP API.

    Example:
        service = HttpMediaService(HttpMediaConfig(base_url="https://media.example.com"))
        ref = service.upload(b"...", "photo.png")
        service.release(ref)
    """

    def __init__(
        self,
        config: HttpMediaConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Connection settings
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {}
            if self.config.api_token:
                headers["Authorization"] = f"Bearer {self.config.api_token}"
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HttpMediaService":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _post(self, operation: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.config.base_url.rstrip('/')}{path}"
        logger.debug("POST %s (%s)", url, operation)
        try:
            response = self._get_client().post(path, **kwargs)
        except httpx.TimeoutException as e:
            raise MediaError(
                operation=operation,
                underlying_error=f"timed out after {self.config.timeout_seconds}s",
                url=url,
            ) from e
        except httpx.RequestError as e:
            raise MediaError(
                operation=operation,
                underlying_error=str(e),
                url=url,
            ) from e

        if response.is_error:
            raise MediaError(
                operation=operation,
                underlying_error=f"HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response

    def upload(self, data: bytes, filename: str) -> MediaRef:
        """
        Upload an attachment.

        Raises:
            ValidationError: If the file type or size is not accepted
            MediaError: If the service fails or returns an unusable body
        """
        media_type = check_upload(data, filename, self.config.max_upload_bytes)
        response = self._post(
            "upload",
            "/upload",
            files={"file": (filename, data)},
            data={"folder": self.config.folder},
        )
        try:
            body = response.json()
            return MediaRef(
                url=body["url"],
                type=MediaType(body.get("type") or media_type.value),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise MediaError(
                operation="upload",
                underlying_error=f"invalid response: {e}",
                status_code=response.status_code,
            ) from e

    def release(self, ref: MediaRef) -> None:
        """Ask the service to destroy an attachment."""
        self._post(
            "release",
            "/destroy",
            json={"public_id": public_id_for(ref.url, self.config.folder)},
        )
