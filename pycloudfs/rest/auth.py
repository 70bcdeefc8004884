"""Credential and session state for the CloudFS REST API.

The credential holds the application identity (client id and secret), the
server location and, once authenticated, the access token pair. It also knows
how to turn a resource kind, a remote path and query parameters into a fully
qualified request URL.

Credentials can be persisted to a YAML config file so that a session survives
process restarts.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import yaml
from pydantic import BaseModel, Field

from .exceptions import ConfigError

if TYPE_CHECKING:
    from typing import Self

# Default config locations
CONFIG_ENV_VAR = "CLOUDFS_CONFIG"
DEFAULT_CONFIG_NAME = ".cloudfs"
XDG_CONFIG_NAME = "cloudfs/cloudfs.conf"

# File permissions (owner read/write only)
CONFIG_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600

DEFAULT_API_VERSION = "v2"
DEFAULT_SCHEME = "https"


class ResourceKind(str, Enum):
    """REST collection an endpoint path is rooted under."""

    FOLDERS = "folders"
    FILES = "files"
    ITEMS = "items"
    SHARES = "shares"
    TRASH = "trash"
    TOKEN = "oauth2/token"


class AuthState(str, Enum):
    """Authentication state of a credential."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    AUTH_FAILED = "auth_failed"


def encode_path(path: str | None) -> str:
    """Percent-encode a remote path one segment at a time.

    The "/" separators are kept as they are, so names containing "?", "#" or
    "%" survive the trip to the server. None and "" both mean the root.
    """
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


def meta_path(path: str | None) -> str:
    """Return `path` with exactly one trailing "/meta" segment appended."""
    path = path or "/"
    if not path.endswith("/"):
        path += "/"
    return path + "meta"


def _is_default(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value <= 0
    return value == ""


def build_query(params: Mapping[str, Any] | None) -> str:
    """Encode query parameters, leaving out default-valued entries.

    The server reacts to the presence of a key rather than its value, so
    None, False, "" and numbers that are not positive are dropped. True is
    rendered as "true".
    """
    if not params:
        return ""
    present = {key: value for key, value in params.items() if not _is_default(value)}
    return str(httpx.QueryParams(present))


def _get_default_config_path() -> Path:
    """Resolve where the credential is stored.

    $CLOUDFS_CONFIG wins outright. Otherwise the first existing file among
    ~/.cloudfs and $XDG_CONFIG_HOME/cloudfs/cloudfs.conf is used, falling
    back to ~/.cloudfs for a first save.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()

    home = Path.home()
    xdg_root = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    candidates = [home / DEFAULT_CONFIG_NAME, xdg_root / XDG_CONFIG_NAME]
    return next((path for path in candidates if path.exists()), candidates[0])


class Credential(BaseModel):
    """Identity, server location and token state for one session.

    Attributes:
        client_id: Application (account) identifier used to sign token requests.
        client_secret: Secret used to sign token requests.
        host: API host name, e.g. "abc123.cloudfs.io".
        scheme: URL scheme, "https" unless talking to a test server.
        api_version: API version path segment.
        access_token: Access token, None until authenticated.
        token_type: Token type returned with the access token.
        username: User the token was issued for.
        state: Current authentication state.
    """

    client_id: str = Field(..., description="Application identifier")
    client_secret: str = Field(default="", description="Signing secret")
    host: str = Field(..., description="API host name")
    scheme: str = Field(default=DEFAULT_SCHEME, description="URL scheme")
    api_version: str = Field(default=DEFAULT_API_VERSION, description="API version tag")
    access_token: str | None = Field(default=None, description="OAuth2 access token")
    token_type: str | None = Field(default=None, description="OAuth2 token type")
    username: str | None = Field(default=None, description="Authenticated user")
    state: AuthState = Field(default=AuthState.UNAUTHENTICATED, exclude=True)

    def model_post_init(self, __context: Any) -> None:
        if self.is_authenticated:
            self.state = AuthState.AUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        """True when both halves of the token pair are present."""
        return bool(self.access_token) and bool(self.token_type)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    def endpoint_uri(self, kind: ResourceKind | str, path: str | None = None) -> str:
        """Request URI (no host, no query) for a resource kind and path."""
        kind = ResourceKind(kind).value
        uri = f"/{self.api_version}/{kind}"
        if path is None and kind == ResourceKind.TOKEN.value:
            return uri
        return uri + encode_path(path)

    def build_url(
        self,
        kind: ResourceKind | str,
        path: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> str:
        """Build a fully qualified request URL.

        Args:
            kind: Resource kind the path is rooted under.
            path: Remote path; None or "" is the root.
            params: Query parameters. Default-valued entries are omitted.

        Returns:
            The request URL.
        """
        url = self.base_url + self.endpoint_uri(kind, path)
        query = build_query(params)
        if query:
            url += "?" + query
        return url

    def set_tokens(self, access_token: str, token_type: str) -> None:
        self.access_token = access_token
        self.token_type = token_type
        self.state = AuthState.AUTHENTICATED

    def clear(self) -> None:
        """Forget the token pair."""
        self.access_token = None
        self.token_type = None
        self.username = None
        self.state = AuthState.UNAUTHENTICATED

    def authorization_header(self) -> dict[str, str]:
        """Authorization header for data-plane calls."""
        if not self.is_authenticated:
            return {}
        token_type = str(self.token_type)
        scheme = token_type[:1].upper() + token_type[1:]
        return {"Authorization": f"{scheme} {self.access_token}"}

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Self:
        """Load a credential from a YAML configuration file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            The loaded credential.

        Raises:
            ConfigError: If the file is missing, empty or cannot be parsed.
        """
        path = (
            _get_default_config_path()
            if config_path is None
            else Path(config_path).expanduser()
        )

        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}") from e

        if not data:
            raise ConfigError(f"Config file is empty: {path}")

        try:
            return cls.model_validate(data)
        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    def save(self, config_path: str | Path | None = None) -> Path:
        """Save the credential to a YAML configuration file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            The path written to.

        Raises:
            ConfigError: If the file cannot be written.
        """
        path = (
            _get_default_config_path()
            if config_path is None
            else Path(config_path).expanduser()
        )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            data = self.model_dump(mode="json", exclude_none=True)
            path.write_text(yaml.safe_dump(data, default_flow_style=False))
            path.chmod(CONFIG_FILE_MODE)
        except Exception as e:
            raise ConfigError(f"Failed to save config: {e}") from e

        return path
