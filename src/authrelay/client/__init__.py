"""
Request pipeline and API clients.

Public API:
    RequestPipeline: adapt → dispatch → classify → retry-once → decode
    NetworkClient, BaseClient, BasicAuthClient, BearerTokenClient: API clients
    Transport, RequestsTransport: Network I/O
    NetworkErrorHandler, DefaultNetworkErrorHandler: Error classification
    BodyCodec, JSONCodec: Body encoding and decoding
"""

from .clients import BaseClient, BasicAuthClient, BearerTokenClient, NetworkClient
from .codec import BodyCodec, JSONCodec
from .error_handler import DefaultNetworkErrorHandler, NetworkErrorHandler
from .pipeline import RequestPipeline
from .transport import RequestsTransport, Transport

__all__ = [
    "RequestPipeline",
    "NetworkClient",
    "BaseClient",
    "BasicAuthClient",
    "BearerTokenClient",
    "Transport",
    "RequestsTransport",
    "NetworkErrorHandler",
    "DefaultNetworkErrorHandler",
    "BodyCodec",
    "JSONCodec",
]
