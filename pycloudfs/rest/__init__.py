"""Python client for the CloudFS REST API."""

from .adapter import RESTAdapter
from .auth import AuthState, Credential, ResourceKind
from .exceptions import (
    APIError,
    AuthenticationFailure,
    CloudFSError,
    ConfigError,
    InvalidArgument,
    InvalidResponse,
    TransportFailure,
)
from .models import (
    Exists,
    Item,
    ItemKind,
    RestoreMethod,
    Share,
    VersionConflict,
)
from .signing import HmacSha1Signer, RequestSigner
from .transport import HTTPTransport, TransportResponse

__all__ = [
    # Adapter
    "RESTAdapter",
    # Auth
    "AuthState",
    "Credential",
    "HmacSha1Signer",
    "RequestSigner",
    "ResourceKind",
    # Transport
    "HTTPTransport",
    "TransportResponse",
    # Models
    "Exists",
    "Item",
    "ItemKind",
    "RestoreMethod",
    "Share",
    "VersionConflict",
    # Errors
    "APIError",
    "AuthenticationFailure",
    "CloudFSError",
    "ConfigError",
    "InvalidArgument",
    "InvalidResponse",
    "TransportFailure",
]
