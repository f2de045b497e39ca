"""
Request adapters that attach credentials to outgoing requests.

Adapters are stateless apart from their configuration: they read what they
need and return a new descriptor, leaving the input untouched.
"""

from abc import ABC, abstractmethod
from base64 import b64encode

from ..models import RequestDescriptor
from .token_storage import TokenStorage


class RequestAdapter(ABC):
    """Transforms a request right before it is dispatched."""

    @abstractmethod
    def adapt(self, request: RequestDescriptor) -> RequestDescriptor:
        """Return the request to dispatch in place of ``request``."""


class BearerTokenAdapter(RequestAdapter):
    """
    Adds ``Authorization: Bearer <token>`` using the stored access token.

    Requests pass through unchanged when no access token is stored.
    """

    def __init__(self, token_storage: TokenStorage):
        self.token_storage = token_storage

    def adapt(self, request: RequestDescriptor) -> RequestDescriptor:
        access_token = self.token_storage.get_access_token()
        if not access_token:
            return request
        return request.with_headers({"Authorization": f"Bearer {access_token}"})


class BasicAuthAdapter(RequestAdapter):
    """Adds an HTTP Basic ``Authorization`` header built from username and password."""

    def __init__(self, username: str, password: str):
        credentials = f"{username}:{password}"
        self._header_value = f"Basic {b64encode(credentials.encode()).decode()}"

    def adapt(self, request: RequestDescriptor) -> RequestDescriptor:
        return request.with_headers({"Authorization": self._header_value})
