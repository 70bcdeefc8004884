"""REST adapter for the CloudFS API.

This module turns SDK-level operations into HTTP requests against the CloudFS
REST API and normalizes the JSON responses into items, shares and plain
values.

Operations:
- Authenticate (signed OAuth2 password grant)
- List, inspect, create, copy, move, alter and delete files and folders
- Upload and download files
- Create, browse, unlock, alter, receive and delete shares
- Browse the trash, restore and purge trashed items
- File version history

Every operation issues exactly one request and never retries. Argument
validation happens before any I/O and raises `InvalidArgument`; a missing HTTP
response raises `TransportFailure`; an error envelope from the server raises
`APIError`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from .auth import AuthState, Credential, ResourceKind, meta_path
from .exceptions import (
    APIError,
    AuthenticationFailure,
    CloudFSError,
    InvalidArgument,
    InvalidResponse,
    TransportFailure,
)
from .models import Exists, Item, RestoreMethod, Share, VersionConflict
from .signing import (
    FORM_URLENCODED,
    HmacSha1Signer,
    RequestSigner,
    authorization_value,
    canonical_request,
    http_date,
)
from .transport import HTTPTransport, ProgressCallback, TransportResponse

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

DEBUG_ENV_VAR = "CLOUDFS_DEBUG"

# Status codes at or below this mean no real HTTP response was obtained
MIN_HTTP_STATUS = 100

PARAM_OPERATION = "operation"
OPERATION_CREATE = "create"
OPERATION_COPY = "copy"
OPERATION_MOVE = "move"

GRANT_TYPE_PASSWORD = "password"


def _form_fields(
    params: Mapping[Any, Any], prefix: str | None = None
) -> Iterator[tuple[str, Any]]:
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix is not None else str(key)
        if isinstance(value, Mapping):
            yield from _form_fields(value, name)
        elif isinstance(value, (list, tuple)):
            if prefix is None:
                for entry in value:
                    yield name, entry
            else:
                yield from _form_fields(dict(enumerate(value)), name)
        else:
            yield name, value


def form_body(params: Mapping[str, Any]) -> str:
    """Encode a request body as application/x-www-form-urlencoded.

    Top-level sequence values become repeated keys. Nested mappings are
    flattened with bracket notation, so ``{"application_data": {"k": "v"}}``
    is sent as ``application_data[k]=v``.
    """
    return str(httpx.QueryParams(list(_form_fields(params))))


def _require_str(
    value: Any, parameter: str, position: int, *, allow_empty: bool = True
) -> str:
    if value is None:
        raise InvalidArgument(parameter, position, "must not be None")
    if not isinstance(value, str):
        raise InvalidArgument(
            parameter, position, f"expected str, got {type(value).__name__}"
        )
    if not allow_empty and not value:
        raise InvalidArgument(parameter, position, "must not be empty")
    return value


def _optional_str(value: Any, parameter: str, position: int) -> str | None:
    if value is None:
        return None
    return _require_str(value, parameter, position)


def _require_enum(
    enum_cls: type[Enum], value: Any, parameter: str, position: int
) -> str:
    try:
        return str(enum_cls(value).value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise InvalidArgument(
            parameter, position, f"must be one of: {allowed} (got {value!r})"
        ) from None


def _require_mapping(value: Any, parameter: str, position: int) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidArgument(
            parameter, position, f"expected a mapping, got {type(value).__name__}"
        )
    return value


def _api_error(data: dict[str, Any], status_code: int) -> APIError:
    error = data["error"]
    if isinstance(error, dict):
        code = error.get("code", status_code)
        message = str(error.get("message", ""))
    else:
        code = error
        message = str(data.get("error_description", ""))
    return APIError(code, message, status_code)


class RESTAdapter:
    """Client for the CloudFS REST API.

    Example:
        >>> credential = Credential(client_id="id", client_secret="secret",
        ...                         host="abc123.cloudfs.io")
        >>> adapter = RESTAdapter(credential)
        >>> adapter.authenticate("user@example.com", "password")
        >>> root = adapter.get_list()
        >>> folder = adapter.create_folder("/", "Reports")

    Attributes:
        credential: Session credential; holds the token pair after authentication.
        transport: HTTP transport used for every request.
        signer: Signer used for the token request.
        debug: When True, requests and responses are dumped at DEBUG level.
            Whether they show up is left to the caller's logging config.
    """

    def __init__(
        self,
        credential: Credential,
        transport: HTTPTransport | None = None,
        signer: RequestSigner | None = None,
        debug: bool = False,
    ) -> None:
        self.credential = credential
        self.transport = transport if transport is not None else HTTPTransport()
        self.signer: RequestSigner = signer if signer is not None else HmacSha1Signer()
        self.debug = debug

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        debug: bool | None = None,
        transport: HTTPTransport | None = None,
    ) -> Self:
        """Create an adapter from a saved credential.

        Args:
            config_path: Path to config file. If None, uses default location.
            debug: Debug flag. If None, CLOUDFS_DEBUG is read once, here.
            transport: Transport to use instead of a fresh HTTPTransport.

        Returns:
            Configured RESTAdapter.
        """
        if debug is None:
            debug = bool(os.environ.get(DEBUG_ENV_VAR))
        return cls(Credential.load(config_path), transport=transport, debug=debug)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - close the transport."""
        self.close()

    # =========================
    # Request plumbing
    # =========================

    def _dump(self, label: str, value: object) -> None:
        if self.debug:
            logger.debug("%s: %s", label, value)

    def _require_auth(self) -> None:
        if not self.credential.is_authenticated:
            raise AuthenticationFailure("Not authenticated. Call authenticate() first.")

    def _headers(self) -> dict[str, str]:
        self._require_auth()
        return self.credential.authorization_header()

    def _unwrap(self, response: TransportResponse) -> dict[str, Any]:
        """Check a response and decode its JSON envelope.

        Raises:
            TransportFailure: If no real HTTP response was obtained.
            APIError: If the server returned an error envelope or an HTTP error.
            InvalidResponse: If the body is not a JSON object.
        """
        status = response.status_code
        if status <= MIN_HTTP_STATUS:
            detail = response.error or f"status {status}"
            raise TransportFailure(f"No HTTP response received: {detail}", status)

        self._dump("response", f"{status} {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            if status >= 400:
                raise APIError(status, response.text, status) from e
            raise InvalidResponse(
                f"Response is not valid JSON: {response.text[:200]!r}", status
            ) from e

        if isinstance(data, dict) and data.get("error"):
            raise _api_error(data, status)

        if status >= 400:
            raise APIError(status, response.text, status)

        if not isinstance(data, dict):
            raise InvalidResponse(f"Expected a JSON object, got {type(data).__name__}")

        return data

    def _request(
        self,
        method: str,
        url: str,
        body: str | None = None,
        redact: bool = False,
    ) -> dict[str, Any]:
        headers = self._headers()
        self._dump("request", f"{method} {url}")

        if method == "GET":
            response = self.transport.get(url, headers)
        elif method == "DELETE":
            response = self.transport.delete(url, headers)
        else:
            headers["Content-Type"] = FORM_URLENCODED
            self._dump("body", "<redacted>" if redact else body)
            response = self.transport.post(url, body or "", headers)

        return self._unwrap(response)

    def _raw(self, response: TransportResponse, expected: int = 200) -> None:
        """Check the status of a response whose body is not JSON."""
        if response.status_code == expected:
            return
        # Raises for transport failures and error envelopes
        self._unwrap(response)
        raise APIError(
            response.status_code,
            f"Unexpected HTTP status {response.status_code}",
            response.status_code,
        )

    @staticmethod
    def _result(data: dict[str, Any]) -> Any:
        if "result" not in data:
            raise InvalidResponse("Response has no 'result'")
        return data["result"]

    @staticmethod
    def _success(result: Any) -> bool:
        if not isinstance(result, dict) or "success" not in result:
            raise InvalidResponse("Expected 'result.success' in response")
        return bool(result["success"])

    def _item_records(self, result: Any) -> list[dict[str, Any]]:
        records = result.get("items") if isinstance(result, dict) else result
        if not isinstance(records, list):
            raise InvalidResponse("Expected 'result.items' to be a list")
        return records

    def _items(self, result: Any, parent_path: str | None) -> list[Item]:
        try:
            return [
                Item.from_response(record, parent_path, self)
                for record in self._item_records(result)
            ]
        except ValidationError as e:
            raise InvalidResponse(f"Malformed item in response: {e}") from e

    def _first_item(self, result: Any, parent_path: str | None) -> Item:
        records = self._item_records(result)
        if not records:
            raise InvalidResponse("Expected at least one item in 'result.items'")
        try:
            return Item.from_response(records[0], parent_path, self)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed item in response: {e}") from e

    def _meta(
        self, result: Any, parent_path: str | None = None, path: str | None = None
    ) -> Item:
        """Build an item from a bare meta record, `result.meta` or `result.items[0]`."""
        if isinstance(result, dict) and "items" in result:
            return self._first_item(result, parent_path)
        if isinstance(result, dict) and isinstance(result.get("meta"), dict):
            result = result["meta"]
        if not isinstance(result, dict):
            raise InvalidResponse("Expected a meta record in 'result'")
        try:
            return Item.from_response(result, parent_path, self, path=path)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed item in response: {e}") from e

    def _share(self, record: Any, paths: list[str] | None = None) -> Share:
        if not isinstance(record, dict):
            raise InvalidResponse("Expected a share record in 'result'")
        try:
            return Share.from_response(record, self, paths)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed share in response: {e}") from e

    # =========================
    # Authentication
    # =========================

    def authenticate(self, username: str, password: str) -> bool:
        """Exchange a username and password for an access token.

        Calling this while the credential already holds a token pair is a no-op.

        Args:
            username: Account user name.
            password: Account password.

        Returns:
            True once the credential is authenticated.

        Raises:
            InvalidArgument: If username or password is not a string.
            AuthenticationFailure: If no token pair could be obtained.
        """
        _require_str(username, "username", 1)
        _require_str(password, "password", 2)

        credential = self.credential
        if credential.is_authenticated:
            return True

        credential.state = AuthState.AUTHENTICATING

        body = form_body(
            {
                "grant_type": GRANT_TYPE_PASSWORD,
                "password": password,
                "username": username,
            }
        )
        date = http_date()
        uri = credential.endpoint_uri(ResourceKind.TOKEN)
        canonical = canonical_request("POST", uri, body, date)
        headers = {
            "Content-Type": FORM_URLENCODED,
            "Date": date,
            "Authorization": authorization_value(
                self.signer, credential.client_id, credential.client_secret, canonical
            ),
        }

        logger.info("Authenticating %s against %s", username, credential.host)
        response = self.transport.post(credential.base_url + uri, body, headers)

        try:
            data = self._unwrap(response)
        except CloudFSError as e:
            credential.state = AuthState.AUTH_FAILED
            raise AuthenticationFailure(f"Authentication failed: {e}") from e

        tokens = data["result"] if isinstance(data.get("result"), dict) else data
        access_token = tokens.get("access_token")
        token_type = tokens.get("token_type")

        if not access_token or not token_type:
            credential.state = AuthState.AUTH_FAILED
            raise AuthenticationFailure(
                "Authentication response did not contain access_token and token_type"
            )

        credential.set_tokens(access_token, token_type)
        credential.username = username
        logger.info("Authenticated %s", username)
        return True

    # =========================
    # Listing and meta data
    # =========================

    def get_list(
        self,
        parent: str | None = None,
        version: int = 0,
        depth: int = 0,
        filter: str | None = None,
    ) -> list[Item]:
        """List the items in a folder.

        Args:
            parent: Folder path; None lists the root.
            version: Only list if the folder is newer than this version.
            depth: How many levels to descend (0 uses the server default).
            filter: Server-side filter expression.

        Returns:
            The items in the folder, possibly empty.
        """
        _optional_str(parent, "parent", 1)
        url = self.credential.build_url(
            ResourceKind.FOLDERS,
            parent,
            {"version": version, "depth": depth, "filter": filter},
        )
        data = self._request("GET", url)
        return self._items(self._result(data), parent or "/")

    def get_item_meta(self, path: str | None) -> Item:
        """Fetch the meta data of a file or folder. None is the root."""
        _optional_str(path, "path", 1)
        url = self.credential.build_url(ResourceKind.ITEMS, meta_path(path))
        data = self._request("GET", url)
        return self._meta(self._result(data), path=path or "/")

    def get_file_meta(self, path: str) -> Item:
        """Fetch the meta data of a file. The root is not a file."""
        _require_str(path, "path", 1, allow_empty=False)
        if path == "/":
            raise InvalidArgument("path", 1, "root is not a file")
        url = self.credential.build_url(ResourceKind.FILES, meta_path(path))
        data = self._request("GET", url)
        return self._meta(self._result(data), path=path)

    def get_folder_meta(self, path: str | None) -> Item:
        """Fetch the meta data of a folder. None is the root."""
        _optional_str(path, "path", 1)
        url = self.credential.build_url(ResourceKind.FOLDERS, meta_path(path))
        data = self._request("GET", url)
        return self._meta(self._result(data), path=path or "/")

    # =========================
    # Create / delete / alter
    # =========================

    def create_folder(
        self,
        parent_path: str | None,
        name: str,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        """Create a folder.

        Args:
            parent_path: Folder to create in; None is the root.
            name: Name of the new folder.
            exists: Conflict policy if the name is taken.

        Returns:
            The created folder.
        """
        if parent_path is None:
            parent_path = "/"
        _require_str(parent_path, "parent_path", 1)
        _require_str(name, "name", 2, allow_empty=False)
        exists = _require_enum(Exists, exists, "exists", 3)

        url = self.credential.build_url(
            ResourceKind.FOLDERS, parent_path, {PARAM_OPERATION: OPERATION_CREATE}
        )
        data = self._request("POST", url, form_body({"name": name, "exists": exists}))
        return self._first_item(self._result(data), parent_path)

    def delete_folder(
        self, path: str, commit: bool = False, force: bool = False
    ) -> bool:
        """Delete a folder.

        Args:
            path: Folder path.
            commit: Delete immediately instead of moving to the trash.
            force: Delete even if the folder is not empty.

        Returns:
            The server's success flag.
        """
        _require_str(path, "path", 1)
        url = self.credential.build_url(
            ResourceKind.FOLDERS, path, {"force": force, "commit": commit}
        )
        return self._success(self._result(self._request("DELETE", url)))

    def delete_file(self, path: str, force: bool = False) -> bool:
        """Delete a file. Returns the server's success flag."""
        _require_str(path, "path", 1)
        url = self.credential.build_url(ResourceKind.FILES, path, {"force": force})
        return self._success(self._result(self._request("DELETE", url)))

    def _alter_meta(
        self,
        kind: ResourceKind,
        path: str,
        values: Mapping[str, Any],
        conflict: VersionConflict | str,
    ) -> Item:
        _require_str(path, "path", 1)
        values = _require_mapping(values, "values", 2)
        conflict = _require_enum(VersionConflict, conflict, "conflict", 3)

        url = self.credential.build_url(kind, meta_path(path))
        body = form_body({**values, "version-conflict": conflict})
        data = self._request("POST", url, body)
        return self._meta(self._result(data), path=path)

    def alter_folder_meta(
        self,
        path: str,
        values: Mapping[str, Any],
        conflict: VersionConflict | str = VersionConflict.FAIL,
    ) -> Item:
        """Alter meta attributes of a folder; returns the updated folder."""
        return self._alter_meta(ResourceKind.FOLDERS, path, values, conflict)

    def alter_file_meta(
        self,
        path: str,
        values: Mapping[str, Any],
        conflict: VersionConflict | str = VersionConflict.FAIL,
    ) -> Item:
        """Alter meta attributes of a file; returns the updated file."""
        return self._alter_meta(ResourceKind.FILES, path, values, conflict)

    # =========================
    # Copy / move
    # =========================

    def _transfer(
        self,
        kind: ResourceKind,
        operation: str,
        path: str,
        destination: str,
        name: str | None,
        exists: Exists | str,
    ) -> Item:
        _require_str(path, "path", 1)
        _require_str(destination, "destination", 2)
        _optional_str(name, "name", 3)
        exists = _require_enum(Exists, exists, "exists", 4)

        url = self.credential.build_url(kind, path, {PARAM_OPERATION: operation})
        params = {"to": destination, "exists": exists}
        if name:
            params["name"] = name

        data = self._request("POST", url, form_body(params))
        return self._first_item(self._result(data), destination)

    def copy_folder(
        self,
        path: str,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        return self._transfer(
            ResourceKind.FOLDERS, OPERATION_COPY, path, destination, name, exists
        )

    def copy_file(
        self,
        path: str,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        return self._transfer(
            ResourceKind.FILES, OPERATION_COPY, path, destination, name, exists
        )

    def move_folder(
        self,
        path: str,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        return self._transfer(
            ResourceKind.FOLDERS, OPERATION_MOVE, path, destination, name, exists
        )

    def move_file(
        self,
        path: str,
        destination: str,
        name: str | None = None,
        exists: Exists | str = Exists.FAIL,
    ) -> Item:
        return self._transfer(
            ResourceKind.FILES, OPERATION_MOVE, path, destination, name, exists
        )

    # =========================
    # File content
    # =========================

    def download_file(
        self,
        path: str,
        sink: str | Path | IO[bytes],
        progress_callback: ProgressCallback | None = None,
    ) -> int:
        """Stream a file's content into a local path or binary stream.

        Args:
            path: Remote file path.
            sink: Local path or writable binary stream.
            progress_callback: Called with (bytes_received, total_bytes).

        Returns:
            Number of bytes written.
        """
        _require_str(path, "path", 1, allow_empty=False)
        if sink is None or (isinstance(sink, str) and not sink):
            raise InvalidArgument("sink", 2, "must be a path or a writable stream")

        url = self.credential.build_url(ResourceKind.FILES, path)
        headers = self._headers()
        self._dump("request", f"GET {url} (raw)")

        response = self.transport.download(url, sink, progress_callback, headers)
        self._raw(response)
        logger.debug("Downloaded %s (%d bytes)", path, response.bytes_written)
        return response.bytes_written

    def upload_file(
        self,
        parent_path: str | None,
        name: str,
        source: str | Path,
        exists: Exists | str = Exists.OVERWRITE,
        progress_callback: ProgressCallback | None = None,
    ) -> Item:
        """Upload a local file.

        Args:
            parent_path: Folder to upload into; None is the root.
            name: Remote file name.
            source: Local file to upload.
            exists: Conflict policy if the name is taken.
            progress_callback: Called with (bytes_sent, total_bytes).

        Returns:
            The uploaded file.
        """
        if parent_path is None:
            parent_path = "/"
        _require_str(parent_path, "parent_path", 1)
        _require_str(name, "name", 2, allow_empty=False)
        if not isinstance(source, (str, Path)) or not str(source):
            raise InvalidArgument("source", 3, "must be a non-empty local path")
        if not Path(source).is_file():
            raise InvalidArgument("source", 3, f"no such local file: {source}")
        exists = _require_enum(Exists, exists, "exists", 4)

        url = self.credential.build_url(ResourceKind.FILES, parent_path)
        headers = self._headers()
        self._dump("request", f"POST {url} (multipart, name={name}, exists={exists})")

        response = self.transport.post_multipart(
            url, name, source, exists, progress_callback, headers
        )
        data = self._unwrap(response)
        return self._meta(self._result(data), parent_path)

    def file_read(self, path: str) -> bytes:
        """Return the whole content of a remote file."""
        _require_str(path, "path", 1, allow_empty=False)
        url = self.credential.build_url(ResourceKind.FILES, path)
        headers = self._headers()
        self._dump("request", f"GET {url} (raw)")

        response = self.transport.get(url, headers)
        self._raw(response)
        return response.body

    def download_url(self, path: str) -> str:
        """Return the URL the server redirects to for downloading a file."""
        _require_str(path, "path", 1, allow_empty=False)
        url = self.credential.build_url(ResourceKind.FILES, path)
        headers = self._headers()

        response = self.transport.get_redirect_location(url, headers)
        location = response.headers.get("location")
        if 300 <= response.status_code < 400 and location:
            return location

        self._unwrap(response)
        raise InvalidResponse(
            f"No redirect location for {path}", response.status_code
        )

    def file_versions(
        self,
        path: str,
        start_version: int | None = None,
        stop_version: int | None = None,
        limit: int | None = None,
    ) -> list[Item]:
        """List previous versions of a file.

        Args:
            path: Remote file path.
            start_version: Lowest version to include.
            stop_version: Highest version to include.
            limit: Maximum number of versions.

        Returns:
            One item per version; each carries the file's path.
        """
        _require_str(path, "path", 1, allow_empty=False)
        url = self.credential.build_url(
            ResourceKind.FILES,
            path.rstrip("/") + "/versions",
            {
                "start-version": start_version,
                "stop-version": stop_version,
                "limit": limit,
            },
        )
        data = self._request("GET", url)
        records = self._item_records(self._result(data))
        try:
            return [
                Item.from_response(record, adapter=self, path=path)
                for record in records
            ]
        except ValidationError as e:
            raise InvalidResponse(f"Malformed version in response: {e}") from e

    # =========================
    # Trash
    # =========================

    def restore(
        self,
        path: str,
        destination: str | None = None,
        method: RestoreMethod | str = RestoreMethod.FAIL,
    ) -> bool:
        """Restore an item from the trash.

        Args:
            path: Path of the item in the trash.
            destination: Where to recreate or rescue the item.
            method: "fail" restores to the original location or fails;
                "recreate" recreates the original location under `destination`;
                "rescue" restores into `destination` if the original is gone.

        Returns:
            The server's success flag.
        """
        _require_str(path, "path", 1, allow_empty=False)
        _optional_str(destination, "destination", 2)
        method = _require_enum(RestoreMethod, method, "method", 3)

        params: dict[str, str] = {}
        if method == RestoreMethod.RECREATE:
            if not destination:
                raise InvalidArgument("destination", 2, "required for recreate")
            params["recreate-path"] = destination
            params["restore"] = RestoreMethod.RECREATE.value
        elif method == RestoreMethod.FAIL:
            params["restore"] = RestoreMethod.FAIL.value
        elif method == RestoreMethod.RESCUE:
            if destination is not None:
                params["rescue-path"] = destination
            params["restore"] = RestoreMethod.RESCUE.value

        url = self.credential.build_url(ResourceKind.TRASH, path)
        data = self._request("POST", url, form_body(params))
        return self._success(self._result(data))

    def list_trash(self, path: str | None = None) -> list[Item]:
        """List the trash, or a folder inside it."""
        _optional_str(path, "path", 1)
        url = self.credential.build_url(ResourceKind.TRASH, path)
        data = self._request("GET", url)
        return self._items(self._result(data), path or "/")

    def delete_trash_item(self, path: str) -> bool:
        """Permanently delete an item from the trash."""
        _require_str(path, "path", 1, allow_empty=False)
        url = self.credential.build_url(ResourceKind.TRASH, path)
        return self._success(self._result(self._request("DELETE", url)))

    # =========================
    # Shares
    # =========================

    def create_share(
        self, path: str | list[str] | tuple[str, ...], password: str | None = None
    ) -> Share:
        """Share one or more items.

        Args:
            path: A path, or a sequence of paths for a multi-item share.
            password: Optional share password.

        Returns:
            The new share.
        """
        if not path:
            raise InvalidArgument("path", 1, "expected a path or a list of paths")
        if isinstance(path, str):
            paths = [path]
        elif isinstance(path, (list, tuple, set, frozenset)):
            paths = [_require_str(p, "path", 1, allow_empty=False) for p in path]
        else:
            raise InvalidArgument(
                "path", 1, f"expected str or a sequence, got {type(path).__name__}"
            )
        _optional_str(password, "password", 2)

        params: dict[str, Any] = {"path": paths if len(paths) > 1 else paths[0]}
        if password:
            params["password"] = password

        url = self.credential.build_url(ResourceKind.SHARES)
        data = self._request("POST", url, form_body(params), redact=bool(password))
        return self._share(self._result(data), paths)

    def shares(self) -> list[Share]:
        """List the shares of the current account."""
        url = self.credential.build_url(ResourceKind.SHARES)
        result = self._result(self._request("GET", url))
        if not result:
            return []
        if not isinstance(result, list):
            raise InvalidResponse("Expected 'result' to be a list of shares")
        return [self._share(record) for record in result]

    @staticmethod
    def _share_path(share_key: str, *parts: str) -> str:
        tail = "/".join(part.strip("/") for part in parts if part)
        return f"/{share_key}/{tail}" if tail else f"/{share_key}"

    def browse_share(self, share_key: str, path: str | None = None) -> list[Item]:
        """List the items of a share, or of a folder inside it."""
        _require_str(share_key, "share_key", 1, allow_empty=False)
        _optional_str(path, "path", 2)

        share_path = self._share_path(share_key, path or "")
        url = self.credential.build_url(ResourceKind.SHARES, meta_path(share_path))
        data = self._request("GET", url)
        return self._items(self._result(data), share_path)

    def receive_share(
        self,
        share_key: str,
        path: str,
        exists: Exists | str = Exists.OVERWRITE,
    ) -> bool:
        """Copy the content of a share into the current account.

        Returns:
            True if the server returned a non-empty result.
        """
        _require_str(share_key, "share_key", 1, allow_empty=False)
        _require_str(path, "path", 2)
        exists = _require_enum(Exists, exists, "exists", 3)

        url = self.credential.build_url(
            ResourceKind.SHARES, self._share_path(share_key) + "/"
        )
        data = self._request("POST", url, form_body({"path": path, "exists": exists}))
        return bool(self._result(data))

    def unlock_share(self, share_key: str, password: str) -> bool:
        """Unlock a password-protected share for this session."""
        _require_str(share_key, "share_key", 1, allow_empty=False)
        _require_str(password, "password", 2, allow_empty=False)

        url = self.credential.build_url(
            ResourceKind.SHARES, self._share_path(share_key, "unlock")
        )
        data = self._request(
            "POST", url, form_body({"password": password}), redact=True
        )
        return bool(self._result(data))

    def alter_share(
        self,
        share_key: str,
        values: Mapping[str, Any],
        password: str | None = None,
    ) -> Share:
        """Change share properties such as its name or password.

        `current_password` is set from `password` first; keys in `values` are
        applied afterwards and win on collision.

        Returns:
            The updated share.
        """
        _require_str(share_key, "share_key", 1, allow_empty=False)
        values = _require_mapping(values, "values", 2)
        _optional_str(password, "password", 3)

        params: dict[str, Any] = {}
        if password:
            params["current_password"] = password
        for key, value in values.items():
            params[key] = value

        url = self.credential.build_url(
            ResourceKind.SHARES, self._share_path(share_key, "info")
        )
        data = self._request("POST", url, form_body(params), redact=True)
        return self._share(self._result(data))

    def delete_share(self, share_key: str) -> bool:
        """Delete a share."""
        _require_str(share_key, "share_key", 1, allow_empty=False)
        url = self.credential.build_url(
            ResourceKind.SHARES, self._share_path(share_key) + "/"
        )
        result = self._request("DELETE", url).get("result")
        if isinstance(result, dict) and "success" in result:
            return bool(result["success"])
        return True
