"""
Token refresh against a JSON endpoint.

``TokenEndpointRefresher`` is a ready-made refresh operation for APIs that
exchange a refresh token for a new pair with a single POST, e.g.::

    POST /auth/refresh  {"refreshToken": "..."}
    200                 {"accessToken": "...", "refreshToken": "..."}

Any callable taking the current refresh token and returning a
``TokenPair`` can be used in its place.
"""

import logging
import time
from typing import Optional

import requests

from ..exceptions import TokenRefreshError
from ..models import TokenPair

logger = logging.getLogger(__name__)


class TokenEndpointRefresher:
    """
    Calls a refresh endpoint and returns the new token pair.

    Implements exponential backoff retry logic for server and network
    errors. 4xx responses fail immediately (the refresh token itself was
    rejected).
    """

    def __init__(
        self,
        refresh_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        request_field: str = "refreshToken",
        access_token_field: str = "accessToken",
        refresh_token_field: str = "refreshToken",
    ):
        """
        Initialize the refresher.

        Args:
            refresh_url: Absolute URL of the refresh endpoint
            session: HTTP session (creates one if not provided)
            timeout: Request timeout in seconds
            max_retries: Maximum retries for 5xx and network errors
            retry_delay: Base delay between retries in seconds
            request_field: Body field carrying the refresh token
            access_token_field: Response field with the new access token
            refresh_token_field: Response field with the new refresh token
        """
        self.refresh_url = refresh_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.request_field = request_field
        self.access_token_field = access_token_field
        self.refresh_token_field = refresh_token_field

    def __call__(self, refresh_token: str) -> TokenPair:
        return self.refresh(refresh_token)

    def refresh(self, refresh_token: str, retry_count: int = 0) -> TokenPair:
        """
        Exchange ``refresh_token`` for a new token pair.

        Args:
            refresh_token: Current refresh token
            retry_count: Current retry attempt (used internally)

        Returns:
            New TokenPair. If the endpoint omits a new refresh token the
            current one is kept.

        Raises:
            TokenRefreshError: If refresh fails after all retries
        """
        logger.info(f"Refreshing access token (attempt {retry_count + 1}/{self.max_retries + 1})")

        try:
            response = self.session.post(
                self.refresh_url,
                json={self.request_field: refresh_token},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Network error during token refresh: {e}")
            if retry_count < self.max_retries:
                self._backoff(retry_count, "network error")
                return self.refresh(refresh_token, retry_count + 1)
            raise TokenRefreshError(
                f"Network error during token refresh after {self.max_retries + 1} attempts: {e}"
            ) from e

        if response.status_code >= 500:
            logger.warning(f"Token refresh failed: {response.status_code} - {response.text}")
            if retry_count < self.max_retries:
                self._backoff(retry_count, "server error")
                return self.refresh(refresh_token, retry_count + 1)
            raise TokenRefreshError(f"Token refresh failed after {self.max_retries + 1} attempts")

        if not response.ok:
            logger.error(f"Token refresh failed: {response.status_code} - {response.text}")
            raise TokenRefreshError(
                f"Token refresh failed with status {response.status_code}. "
                f"The refresh token may have expired."
            )

        try:
            data = response.json()
            return TokenPair(
                access_token=data[self.access_token_field],
                refresh_token=data.get(self.refresh_token_field) or refresh_token,
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Invalid response from refresh endpoint: {e}")
            raise TokenRefreshError(f"Invalid response from refresh endpoint: {e}") from e

    def _backoff(self, retry_count: int, reason: str) -> None:
        delay = self.retry_delay * (2**retry_count)
        logger.warning(f"Retrying after {delay}s due to {reason}")
        time.sleep(delay)
