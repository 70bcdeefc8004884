"""Tests for the HTTP transport."""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
from pytest_httpx import HTTPXMock

from pycloudfs.rest import HTTPTransport, TransportResponse

URL = "https://test.cloudfs.io/v2/files/a.txt"


@pytest.fixture
def transport() -> Iterator[HTTPTransport]:
    """Create a transport for testing."""
    with HTTPTransport() as transport:
        yield transport


class TestTransportResponse:
    """Tests for TransportResponse."""

    def test_json(self) -> None:
        """Test decoding a JSON body."""
        response = TransportResponse(status_code=200, body=b'{"result": 1}')
        assert response.json() == {"result": 1}
        assert response.text == '{"result": 1}'

    def test_json_invalid(self) -> None:
        """Test that malformed JSON raises ValueError."""
        response = TransportResponse(status_code=200, body=b"<html>")
        with pytest.raises(ValueError):
            response.json()

    def test_failed(self) -> None:
        """Test the response built for a transport error."""
        response = TransportResponse.failed(httpx.ConnectError("refused"))
        assert response.status_code == 0
        assert response.error == "ConnectError: refused"


class TestBasicRequests:
    """Tests for get, post and delete."""

    def test_get_passes_headers(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that per-call headers are sent."""
        httpx_mock.add_response(url=URL, method="GET", json={"result": {}})

        response = transport.get(URL, {"Authorization": "Bearer tok"})

        assert response.status_code == 200
        assert httpx_mock.get_request().headers["Authorization"] == "Bearer tok"

    def test_post_sends_body(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that the body is sent as given."""
        httpx_mock.add_response(url=URL, method="POST", json={"result": {}})

        transport.post(URL, "a=1&b=2")

        assert httpx_mock.get_request().content == b"a=1&b=2"

    def test_delete(self, transport: HTTPTransport, httpx_mock: HTTPXMock) -> None:
        """Test a DELETE request."""
        httpx_mock.add_response(url=URL, method="DELETE", status_code=404, text="gone")

        response = transport.delete(URL)

        assert response.status_code == 404
        assert response.text == "gone"

    def test_headers_lowercased(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that response header names are lowercased."""
        httpx_mock.add_response(url=URL, headers={"X-Request-Id": "abc"})

        response = transport.get(URL)

        assert response.headers["x-request-id"] == "abc"

    def test_connection_error(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that httpx errors come back as status 0."""
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        response = transport.get(URL)

        assert response.status_code == 0
        assert "Connection refused" in response.error


class TestDownload:
    """Tests for streaming downloads."""

    def test_download_to_stream(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test streaming into a binary stream with progress."""
        content = b"x" * 1000
        httpx_mock.add_response(url=URL, content=content)
        progress: list[tuple[int, int]] = []
        sink = io.BytesIO()

        response = transport.download(
            URL, sink, lambda done, total: progress.append((done, total))
        )

        assert response.status_code == 200
        assert response.bytes_written == 1000
        assert sink.getvalue() == content
        assert progress[-1] == (1000, 1000)

    def test_download_to_path(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock, tmp_path: Path
    ) -> None:
        """Test streaming into a local file, creating parent directories."""
        httpx_mock.add_response(url=URL, content=b"hello")
        target = tmp_path / "out" / "a.txt"

        response = transport.download(URL, target)

        assert response.bytes_written == 5
        assert target.read_bytes() == b"hello"

    def test_interrupted_download_keeps_existing_file(self, tmp_path: Path) -> None:
        """Test that a stream failing midway leaves the destination untouched."""

        class _BrokenStream(httpx.SyncByteStream):
            def __iter__(self) -> Iterator[bytes]:
                yield b"partial"
                raise httpx.ReadError("connection reset")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=_BrokenStream())

        target = tmp_path / "a.txt"
        target.write_bytes(b"previous content")

        transport = HTTPTransport()
        transport._client = httpx.Client(transport=httpx.MockTransport(handler))
        with transport:
            response = transport.download(URL, target)

        assert response.status_code == 0
        assert "connection reset" in response.error
        assert target.read_bytes() == b"previous content"
        assert list(tmp_path.iterdir()) == [target]

    def test_download_error_not_written(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that an error body is returned instead of written."""
        httpx_mock.add_response(
            url=URL, status_code=404, json={"error": {"code": 2003, "message": "nope"}}
        )
        sink = io.BytesIO()

        response = transport.download(URL, sink)

        assert response.status_code == 404
        assert response.bytes_written == 0
        assert sink.getvalue() == b""
        assert response.json()["error"]["code"] == 2003


class TestUpload:
    """Tests for multipart uploads."""

    def test_post_multipart(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock, tmp_path: Path
    ) -> None:
        """Test the multipart form layout and progress reporting."""
        source = tmp_path / "local.bin"
        source.write_bytes(b"payload-bytes")
        httpx_mock.add_response(url=URL, method="POST", json={"result": {}})
        progress: list[tuple[int, int]] = []

        response = transport.post_multipart(
            URL,
            "remote.bin",
            source,
            "overwrite",
            lambda done, total: progress.append((done, total)),
        )

        assert response.status_code == 200
        request = httpx_mock.get_request()
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="name"' in body
        assert b"remote.bin" in body
        assert b'name="exists"' in body
        assert b"overwrite" in body
        assert b"payload-bytes" in body
        assert progress[-1] == (13, 13)


class TestRedirect:
    """Tests for redirect lookups."""

    def test_redirect_not_followed(
        self, transport: HTTPTransport, httpx_mock: HTTPXMock
    ) -> None:
        """Test that the Location header is returned without following it."""
        httpx_mock.add_response(
            url=URL,
            status_code=302,
            headers={"Location": "https://cdn.example.com/blob"},
        )

        response = transport.get_redirect_location(URL)

        assert response.status_code == 302
        assert response.headers["location"] == "https://cdn.example.com/blob"
