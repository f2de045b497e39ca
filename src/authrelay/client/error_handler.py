"""
Error classification policy.

The pipeline never inspects status codes itself; it asks a
``NetworkErrorHandler`` whether an outcome is a failure. Applications can
pass their own handler to change the policy (e.g. treat 404 as success).
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import NetworkError, NoResponseError, ServerError, TransportError
from ..models import RawResponse


class NetworkErrorHandler(ABC):
    """Turns a raw transport outcome into a domain error, or None for success."""

    @abstractmethod
    def transform(
        self, response: Optional[RawResponse], error: Optional[BaseException]
    ) -> Optional[NetworkError]:
        """
        Classify one outcome.

        Args:
            response: HTTP response, if one was received
            error: Transport failure, if dispatch failed

        Returns:
            The error to surface, or None if the outcome is a success
        """


class DefaultNetworkErrorHandler(NetworkErrorHandler):
    """
    Default policy:

    - transport failure → TransportError
    - no response → NoResponseError
    - non-2xx → ServerError(status, body text)
    - 2xx → success, whatever the body
    """

    def transform(
        self, response: Optional[RawResponse], error: Optional[BaseException]
    ) -> Optional[NetworkError]:
        if error is not None:
            return TransportError(error)
        if response is None:
            return NoResponseError()
        if response.ok:
            return None
        return ServerError(response.status_code, response.text)
