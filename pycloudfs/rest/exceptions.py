"""Exceptions raised by the CloudFS REST client."""

from __future__ import annotations


class CloudFSError(Exception):
    """Base exception for CloudFS errors."""

    pass


class ConfigError(CloudFSError):
    """Raised when configuration loading/saving fails."""

    pass


class InvalidArgument(CloudFSError):
    """Raised when a required argument is missing, empty or of the wrong type.

    Always raised before any network call is made.
    """

    def __init__(self, parameter: str, position: int, reason: str) -> None:
        super().__init__(
            f"Invalid argument '{parameter}' at position {position}: {reason}"
        )
        self.parameter = parameter
        self.position = position
        self.reason = reason


class TransportFailure(CloudFSError):
    """Raised when no usable HTTP response was obtained."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class APIError(CloudFSError):
    """Raised when the server answers with an error envelope."""

    def __init__(
        self, code: object, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(f"API error {code}: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code


class InvalidResponse(APIError):
    """Raised when a response does not have the expected shape."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("invalid_response", message, status_code)


class AuthenticationFailure(CloudFSError):
    """Raised when authentication fails or a call needs a token we don't have."""

    pass
