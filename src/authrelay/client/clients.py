"""
Ready-to-use API clients.

- BaseClient: no authentication, relative paths joined to a base URL
- BasicAuthClient: HTTP Basic authentication on every request
- BearerTokenClient: bearer token on every request, refreshed and retried
  once when the API rejects it

All of them expose ``request`` plus ``get``/``post``/``put``/``patch``/
``delete`` helpers that return an ``ApiResponse``.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from ..auth.adapters import BasicAuthAdapter, BearerTokenAdapter, RequestAdapter
from ..auth.coordinator import (
    DEFAULT_EXPIRED_STATUS_CODES,
    AuthRefreshCoordinator,
    TokenRefresher,
)
from ..auth.refresher import TokenEndpointRefresher
from ..auth.token_storage import FileTokenStorage, InMemoryTokenStorage, TokenStorage
from ..config import ClientConfig
from ..exceptions import ConfigurationError
from ..models import ApiResponse, BodyEncoding, RequestDescriptor, TokenPair
from .codec import BodyCodec
from .error_handler import NetworkErrorHandler
from .pipeline import RequestPipeline
from .transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NetworkClient:
    """
    Base class for clients: URL building plus per-method helpers over one pipeline.

    Subclasses decide which adapter and coordinator the pipeline gets.
    """

    def __init__(
        self,
        base_url: str,
        adapter: Optional[RequestAdapter] = None,
        coordinator: Optional[AuthRefreshCoordinator] = None,
        transport: Optional[Transport] = None,
        timeout: float = 30,
        error_handler: Optional[NetworkErrorHandler] = None,
        codec: Optional[BodyCodec] = None,
        log_traffic: bool = False,
        refresh_timeout: Optional[float] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: API base URL (e.g. "https://api.example.com")
            adapter: Credential adapter applied to every request
            coordinator: Token refresh coordinator
            transport: Transport (a requests-based one if not provided)
            timeout: Timeout for the default transport in seconds
            error_handler: Error classification policy
            codec: Body codec
            log_traffic: Log requests and responses at DEBUG level
            refresh_timeout: Longest wait for an in-flight token refresh
        """
        self.base_url = base_url.rstrip("/")
        self.pipeline = RequestPipeline(
            transport or RequestsTransport(timeout=timeout),
            adapter=adapter,
            error_handler=error_handler,
            coordinator=coordinator,
            codec=codec,
            log_traffic=log_traffic,
            refresh_timeout=refresh_timeout,
        )
        logger.info(f"{self.__class__.__name__} initialized for {self.base_url}")

    def build_url(self, path: str) -> str:
        """
        Resolve ``path`` against the base URL.

        Absolute http(s) URLs are returned unchanged.
        """
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        response_type: Type[T] = Any,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        encoding: BodyEncoding = BodyEncoding.JSON,
    ) -> ApiResponse[T]:
        """
        Send a request and decode the response.

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            response_type: Type to decode the body into
            params: Query parameters
            body: Request body
            headers: Extra headers
            encoding: Body encoding

        Returns:
            ApiResponse with the decoded value

        Raises:
            NetworkError: If the request fails
        """
        descriptor = RequestDescriptor(
            method=method,
            url=self.build_url(path),
            headers=dict(headers or {}),
            params=params,
            body=body,
            encoding=encoding,
        )
        return self.pipeline.send_response(descriptor, response_type)

    def get(self, path: str, response_type: Type[T] = Any, **kwargs: Any) -> ApiResponse[T]:
        return self.request("GET", path, response_type, **kwargs)

    def post(self, path: str, response_type: Type[T] = Any, **kwargs: Any) -> ApiResponse[T]:
        return self.request("POST", path, response_type, **kwargs)

    def put(self, path: str, response_type: Type[T] = Any, **kwargs: Any) -> ApiResponse[T]:
        return self.request("PUT", path, response_type, **kwargs)

    def patch(self, path: str, response_type: Type[T] = Any, **kwargs: Any) -> ApiResponse[T]:
        return self.request("PATCH", path, response_type, **kwargs)

    def delete(self, path: str, response_type: Type[T] = Any, **kwargs: Any) -> ApiResponse[T]:
        return self.request("DELETE", path, response_type, **kwargs)


class BaseClient(NetworkClient):
    """Client for public endpoints that need no authentication."""

    pass


class BasicAuthClient(NetworkClient):
    """Client sending HTTP Basic credentials with every request."""

    def __init__(self, base_url: str, username: str, password: str, **kwargs: Any):
        super().__init__(base_url, adapter=BasicAuthAdapter(username, password), **kwargs)


class BearerTokenClient(NetworkClient):
    """
    Client using bearer tokens with automatic refresh.

    Every request carries the stored access token. When the API answers
    with an expired-credential status, the token pair is refreshed once
    (shared by all requests failing at the same time) and the request is
    retried once.

    Example:
        client = BearerTokenClient(
            "https://api.example.com",
            token_refresher=TokenEndpointRefresher("https://api.example.com/auth/refresh"),
            token_storage=FileTokenStorage(".tokens.json"),
        )
        me = client.get("/users/me", User).value
    """

    def __init__(
        self,
        base_url: str,
        token_refresher: TokenRefresher,
        token_storage: Optional[TokenStorage] = None,
        expired_status_codes: Iterable[int] = DEFAULT_EXPIRED_STATUS_CODES,
        **kwargs: Any,
    ):
        """
        Initialize client.

        Args:
            base_url: API base URL
            token_refresher: Callable exchanging a refresh token for a new pair
            token_storage: Token storage (in-memory if not provided)
            expired_status_codes: Statuses that trigger a token refresh
            **kwargs: Passed to NetworkClient
        """
        self.token_storage = token_storage or InMemoryTokenStorage()
        self.coordinator = AuthRefreshCoordinator(
            self.token_storage, token_refresher, expired_status_codes=expired_status_codes
        )
        super().__init__(
            base_url,
            adapter=BearerTokenAdapter(self.token_storage),
            coordinator=self.coordinator,
            **kwargs,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        token_refresher: Optional[TokenRefresher] = None,
        **kwargs: Any,
    ) -> "BearerTokenClient":
        """
        Build a client from configuration.

        Args:
            config: Client configuration
            token_refresher: Refresh operation (defaults to a
                TokenEndpointRefresher on ``config.refresh_url``)
            **kwargs: Passed to the constructor

        Raises:
            ConfigurationError: If no refresher is given and no refresh_url is configured
        """
        if token_refresher is None:
            if not config.refresh_url:
                raise ConfigurationError(
                    "No token refresher given and no refresh_url configured"
                )
            token_refresher = TokenEndpointRefresher(config.refresh_url, timeout=config.timeout)

        storage = (
            FileTokenStorage(config.token_file) if config.token_file else InMemoryTokenStorage()
        )
        return cls(
            config.base_url,
            token_refresher=token_refresher,
            token_storage=storage,
            expired_status_codes=config.expired_status_codes,
            timeout=config.timeout,
            log_traffic=config.log_traffic,
            refresh_timeout=config.refresh_timeout,
            **kwargs,
        )

    def login(self, tokens: TokenPair) -> None:
        """Store the token pair of a freshly authenticated session."""
        self.token_storage.save_token_pair(tokens)
        logger.info("Tokens stored")

    def logout(self) -> None:
        """Forget the stored tokens."""
        self.token_storage.clear_tokens()
        logger.info("Tokens cleared")

    def is_authorized(self) -> bool:
        """True if a refresh token is stored."""
        return self.token_storage.has_tokens()
