"""
Credential handling for authrelay clients.

Public API:
    TokenStorage: Token storage interface
    InMemoryTokenStorage: Process-local token storage
    FileTokenStorage: JSON file token storage
    RequestAdapter: Request transformation interface
    BearerTokenAdapter: Adds the stored access token to requests
    BasicAuthAdapter: Adds HTTP Basic credentials to requests
    AuthRefreshCoordinator: Single-flight token refresh and retry decisions
    TokenEndpointRefresher: Refresh operation for JSON refresh endpoints
"""

from .adapters import BasicAuthAdapter, BearerTokenAdapter, RequestAdapter
from .coordinator import AuthRefreshCoordinator, RefreshPhase, RetryResult, TokenRefresher
from .refresher import TokenEndpointRefresher
from .token_storage import FileTokenStorage, InMemoryTokenStorage, TokenStorage

__all__ = [
    # Token Storage
    "TokenStorage",
    "InMemoryTokenStorage",
    "FileTokenStorage",
    # Adapters
    "RequestAdapter",
    "BearerTokenAdapter",
    "BasicAuthAdapter",
    # Refresh
    "AuthRefreshCoordinator",
    "RefreshPhase",
    "RetryResult",
    "TokenRefresher",
    "TokenEndpointRefresher",
]
