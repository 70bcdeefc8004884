"""HTTP transport used by the REST adapter.

A thin layer over `httpx.Client`. Every call returns a `TransportResponse`
instead of raising: connection errors, timeouts and other `httpx.HTTPError`s
come back with ``status_code == 0`` and the error text in ``error``, which
the adapter reports as a transport failure.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

# HTTP client settings
DEFAULT_TIMEOUT = 30.0
TRANSFER_TIMEOUT = 300.0  # 5 minutes for uploads and downloads

DOWNLOAD_CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"

ProgressCallback = Callable[[int, int], None]


def _lower_headers(headers: httpx.Headers) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


class TransportResponse(BaseModel):
    """Status, headers and raw body of one HTTP exchange."""

    status_code: int = Field(..., description="HTTP status, 0 if none was received")
    body: bytes = Field(default=b"", description="Raw response body")
    headers: dict[str, str] = Field(default_factory=dict)
    error: str = Field(default="", description="Transport error message, if any")
    bytes_written: int = Field(default=0, description="Bytes streamed to a sink")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON. Raises ValueError on malformed input."""
        return json.loads(self.body)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> TransportResponse:
        return cls(
            status_code=response.status_code,
            body=response.content,
            headers=_lower_headers(response.headers),
        )

    @classmethod
    def failed(cls, error: Exception) -> TransportResponse:
        return cls(status_code=0, error=f"{type(error).__name__}: {error}")


class _ProgressReader:
    """File wrapper reporting cumulative bytes read to a callback."""

    def __init__(self, fileobj: IO[bytes], total: int, callback: ProgressCallback):
        self._fileobj = fileobj
        self._total = total
        self._callback = callback
        self._read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        if chunk:
            self._read += len(chunk)
            self._callback(self._read, self._total)
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        self._read = 0
        return self._fileobj.seek(offset, whence)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._fileobj, name)


class HTTPTransport:
    """Synchronous HTTP transport.

    Headers are passed per call; the underlying client carries none of its own.

    Attributes:
        timeout: Timeout for plain API calls, in seconds.
        transfer_timeout: Timeout for uploads and downloads, in seconds.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transfer_timeout: float = TRANSFER_TIMEOUT,
    ) -> None:
        self.timeout = timeout
        self.transfer_timeout = transfer_timeout
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(timeout=httpx.Timeout(self.timeout))
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
        self._client = None

    def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> TransportResponse:
        try:
            response = self._get_client().request(
                method, url, headers=dict(headers or {}), **kwargs
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return TransportResponse.failed(e)
        return TransportResponse.from_httpx(response)

    def get(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> TransportResponse:
        return self._send("GET", url, headers)

    def post(
        self,
        url: str,
        body: str | bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        return self._send("POST", url, headers, content=body)

    def delete(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> TransportResponse:
        return self._send("DELETE", url, headers)

    def post_multipart(
        self,
        url: str,
        name: str,
        file_path: str | Path,
        exists: str,
        progress_callback: ProgressCallback | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """Upload a local file as a multipart form.

        Args:
            url: Upload URL.
            name: Remote file name, sent as the `name` field and the part filename.
            file_path: Local file to upload.
            exists: Conflict policy, sent as the `exists` field.
            progress_callback: Called with (bytes_sent, total_bytes).
            headers: Extra request headers.

        Returns:
            The server response.
        """
        file_path = Path(file_path)
        total = file_path.stat().st_size

        with file_path.open("rb") as fileobj:
            stream: Any = fileobj
            if progress_callback is not None:
                stream = _ProgressReader(fileobj, total, progress_callback)

            return self._send(
                "POST",
                url,
                headers,
                data={"name": name, "exists": exists},
                files={"file": (name, stream, "application/octet-stream")},
                timeout=self.transfer_timeout,
            )

    def download(
        self,
        url: str,
        sink: str | Path | IO[bytes],
        progress_callback: ProgressCallback | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """Stream a response body into `sink`.

        The body is only written when the server answers 200; otherwise the
        error body is returned in the response and nothing is written.

        Args:
            url: Download URL.
            sink: Local path or writable binary stream.
            progress_callback: Called with (bytes_received, total_bytes);
                total_bytes is 0 when the server sends no Content-Length.
            headers: Extra request headers.

        Returns:
            The response, with `bytes_written` set.
        """
        try:
            with self._get_client().stream(
                "GET",
                url,
                headers=dict(headers or {}),
                timeout=self.transfer_timeout,
            ) as response:
                if response.status_code != 200:
                    response.read()
                    return TransportResponse.from_httpx(response)

                total = int(response.headers.get("Content-Length", 0) or 0)
                written = self._write_stream(response, sink, total, progress_callback)

                return TransportResponse(
                    status_code=response.status_code,
                    headers=_lower_headers(response.headers),
                    bytes_written=written,
                )
        except httpx.HTTPError as e:
            logger.warning("GET %s failed: %s", url, e)
            return TransportResponse.failed(e)

    @staticmethod
    def _write_stream(
        response: httpx.Response,
        sink: str | Path | IO[bytes],
        total: int,
        progress_callback: ProgressCallback | None,
    ) -> int:
        written = 0

        def _copy(out: IO[bytes]) -> None:
            nonlocal written
            for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                out.write(chunk)
                written += len(chunk)
                if progress_callback is not None:
                    progress_callback(written, total)

        if isinstance(sink, (str, Path)):
            path = Path(sink)
            path.parent.mkdir(parents=True, exist_ok=True)
            # The destination is only replaced once the whole body has arrived
            partial = path.with_name(path.name + PARTIAL_SUFFIX)
            try:
                with partial.open("wb") as out:
                    _copy(out)
                partial.replace(path)
            finally:
                partial.unlink(missing_ok=True)
        else:
            _copy(sink)

        return written

    def get_redirect_location(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> TransportResponse:
        """Issue a GET without following redirects.

        The `Location` header, if any, is available in the response headers.
        """
        return self._send("GET", url, headers, follow_redirects=False)

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - close HTTP client if open."""
        self.close()
