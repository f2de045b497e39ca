"""
authrelay: HTTP client layer with bearer tokens and automatic token refresh.

Every request carries the stored access token. When the API rejects it,
the token pair is refreshed once, no matter how many requests failed at the
same time, and each failed request is retried once with the new token.

Example:
    from authrelay import BearerTokenClient, FileTokenStorage, TokenEndpointRefresher

    client = BearerTokenClient(
        "https://api.example.com",
        token_refresher=TokenEndpointRefresher("https://api.example.com/auth/refresh"),
        token_storage=FileTokenStorage("/var/lib/myapp/tokens.json"),
    )
    profile = client.get("/users/me").value
"""

from .auth import (
    AuthRefreshCoordinator,
    BasicAuthAdapter,
    BearerTokenAdapter,
    FileTokenStorage,
    InMemoryTokenStorage,
    RequestAdapter,
    RetryResult,
    TokenEndpointRefresher,
    TokenStorage,
)
from .client import (
    BaseClient,
    BasicAuthClient,
    BearerTokenClient,
    DefaultNetworkErrorHandler,
    JSONCodec,
    NetworkClient,
    NetworkErrorHandler,
    RequestPipeline,
    RequestsTransport,
    Transport,
)
from .config import ClientConfig
from .exceptions import (
    AuthRelayError,
    ConfigurationError,
    DecodingError,
    NetworkError,
    NoDataError,
    NoResponseError,
    ServerError,
    TokenRefreshError,
    TokenStorageError,
    TransportError,
)
from .models import ApiResponse, BodyEncoding, EmptyResponse, RequestDescriptor, TokenPair

__version__ = "0.1.0"

__all__ = [
    # Clients
    "NetworkClient",
    "BaseClient",
    "BasicAuthClient",
    "BearerTokenClient",
    "RequestPipeline",
    # Collaborators
    "Transport",
    "RequestsTransport",
    "NetworkErrorHandler",
    "DefaultNetworkErrorHandler",
    "JSONCodec",
    # Auth
    "TokenStorage",
    "InMemoryTokenStorage",
    "FileTokenStorage",
    "RequestAdapter",
    "BearerTokenAdapter",
    "BasicAuthAdapter",
    "AuthRefreshCoordinator",
    "RetryResult",
    "TokenEndpointRefresher",
    # Configuration
    "ClientConfig",
    # Models
    "TokenPair",
    "RequestDescriptor",
    "BodyEncoding",
    "ApiResponse",
    "EmptyResponse",
    # Exceptions
    "AuthRelayError",
    "ConfigurationError",
    "TokenStorageError",
    "TokenRefreshError",
    "NetworkError",
    "TransportError",
    "NoResponseError",
    "NoDataError",
    "ServerError",
    "DecodingError",
]
