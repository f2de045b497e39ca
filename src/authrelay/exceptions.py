"""
Exception classes for the authrelay client.

The network errors below form the only error surface a caller of
``RequestPipeline.send`` ever sees. Refresh failures are deliberately
absent from that surface: a request whose token refresh failed raises the
error that triggered the refresh in the first place.
"""

from typing import Optional


class AuthRelayError(Exception):
    """Base exception for all authrelay errors."""

    pass


class ConfigurationError(AuthRelayError):
    """Client configuration error (missing or invalid configuration)."""

    pass


class TokenStorageError(AuthRelayError):
    """Token storage operation failed."""

    pass


class TokenRefreshError(AuthRelayError):
    """Failed to obtain a new token pair using the refresh token."""

    pass


class NetworkError(AuthRelayError):
    """Base class for errors surfaced by the request pipeline."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class TransportError(NetworkError):
    """The underlying dispatch failed (connection, timeout, TLS...)."""

    def __init__(self, underlying: BaseException):
        self.underlying = underlying
        super().__init__(f"Network error: {underlying}")


class NoResponseError(NetworkError):
    """No HTTP response was received."""

    def __init__(self, message: str = "No response received from server"):
        super().__init__(message)


class NoDataError(NetworkError):
    """A successful response carried no body at all."""

    def __init__(self, message: str = "Response data is empty"):
        super().__init__(message)


class ServerError(NetworkError):
    """
    Non-2xx HTTP response.

    Attributes:
        status_code: HTTP status code
        message: Response body decoded as text, or None if there was none
    """

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Server error [{status_code}]: {message or 'Unknown error'}")


class DecodingError(NetworkError):
    """Response body could not be decoded into the requested type."""

    def __init__(self, underlying: BaseException):
        self.underlying = underlying
        super().__init__(f"Failed to decode response: {underlying}")
