"""
Data models shared by the authrelay client.

Requests travel through the pipeline as ``RequestDescriptor`` values, raw
transport results as ``Outcome``/``RawResponse``, and decoded results as
``ApiResponse``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TokenPair:
    """
    Access/refresh token pair representing the current session.

    Attributes:
        access_token: Short-lived token sent as the bearer credential
        refresh_token: Long-lived token used to obtain a new pair
    """

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        # Never leak tokens into logs or tracebacks
        return "TokenPair(access_token='***', refresh_token='***')"


class BodyEncoding(str, Enum):
    """How a request body is put on the wire."""

    JSON = "json"
    FORM = "form"


@dataclass
class RequestDescriptor:
    """
    One outgoing request.

    A new descriptor is created for every logical call; ``retry_count``
    starts at 0 and is only ever raised to 1 by the pipeline on a copy.

    Attributes:
        method: HTTP method (GET, POST, ...)
        url: Absolute request URL
        headers: Request headers
        params: Query parameters
        body: Request body (encoded according to ``encoding``)
        encoding: Body encoding policy
        retry_count: Number of times this logical call has been retried
    """

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    body: Any = None
    encoding: BodyEncoding = BodyEncoding.JSON
    retry_count: int = 0

    def __post_init__(self) -> None:
        self.method = self.method.upper()

    def with_headers(self, extra: Dict[str, str]) -> "RequestDescriptor":
        """Return a copy with ``extra`` merged over the existing headers."""
        return replace(self, headers={**self.headers, **extra})

    def for_retry(self) -> "RequestDescriptor":
        """Return a copy marked as the (single) retry of this call."""
        return replace(self, headers=dict(self.headers), retry_count=self.retry_count + 1)


@dataclass
class RawResponse:
    """HTTP response metadata plus the undecoded body."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> Optional[str]:
        """Body decoded as UTF-8, or None if missing or not valid UTF-8."""
        if self.body is None:
            return None
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError:
            return None


@dataclass
class Outcome:
    """Result of one transport dispatch, before classification."""

    response: Optional[RawResponse] = None
    error: Optional[BaseException] = None


@dataclass
class ApiResponse(Generic[T]):
    """
    Decoded response.

    Attributes:
        value: Body decoded into the requested type
        data: Raw response bytes
        response: Status code and headers
    """

    value: T
    data: bytes
    response: RawResponse

    @property
    def status_code(self) -> int:
        return self.response.status_code


@dataclass(frozen=True)
class EmptyResponse:
    """
    Response type for endpoints that return no body.

    Typical for 204 No Content, DELETE, or PUT calls. Decodes from zero
    bytes and every instance compares equal.
    """

    pass
