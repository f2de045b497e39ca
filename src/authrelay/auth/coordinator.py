"""
Single-flight token refresh coordination.

When a request fails because its access token expired, the pipeline hands
the failure to ``AuthRefreshCoordinator.on_failure``. The coordinator
decides whether the request may be retried and, if so, makes sure exactly
one refresh runs no matter how many requests fail at the same time:

- The first eligible failure moves the coordinator from IDLE to REFRESHING
  and starts the refresh on a background thread.
- Failures arriving while a refresh is in flight only register a waiter.
- When the refresh finishes, all registered waiters are resolved together
  with that refresh's outcome, after the coordinator is back to IDLE.

A request is eligible only on its first attempt; a retried request that
fails again is never retried a second time.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from ..exceptions import NetworkError, ServerError
from ..models import RequestDescriptor, TokenPair
from .token_storage import TokenStorage

logger = logging.getLogger(__name__)

# Takes the current refresh token, returns a new pair or raises.
TokenRefresher = Callable[[str], TokenPair]

DEFAULT_EXPIRED_STATUS_CODES = (401,)


class RefreshPhase(Enum):
    """Coordinator state."""

    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class RetryResult:
    """
    Decision handed back to a failed request.

    Attributes:
        should_retry: True if the request should be sent once more
        error: Error to raise when not retrying
    """

    should_retry: bool
    error: Optional[NetworkError] = None

    @classmethod
    def retry(cls) -> "RetryResult":
        return cls(should_retry=True)

    @classmethod
    def do_not_retry(cls, error: NetworkError) -> "RetryResult":
        return cls(should_retry=False, error=error)


class AuthRefreshCoordinator:
    """
    Owns the refresh protocol shared by every request of one client.

    Example:
        coordinator = AuthRefreshCoordinator(storage, refresher)
        waiter = coordinator.on_failure(request, error)
        if waiter.result().should_retry:
            ...  # send the request again
    """

    def __init__(
        self,
        token_storage: TokenStorage,
        token_refresher: TokenRefresher,
        expired_status_codes: Iterable[int] = DEFAULT_EXPIRED_STATUS_CODES,
    ):
        """
        Initialize the coordinator.

        Args:
            token_storage: Where the token pair is read from and saved to
            token_refresher: Callable exchanging a refresh token for a new pair
            expired_status_codes: HTTP statuses meaning "credential expired"
        """
        self.token_storage = token_storage
        self.token_refresher = token_refresher
        self.expired_status_codes = frozenset(expired_status_codes)

        self._lock = threading.Lock()
        self._phase = RefreshPhase.IDLE
        self._waiters: List[Tuple[Future, NetworkError]] = []
        self._refresh_cycles = 0

    @property
    def phase(self) -> RefreshPhase:
        with self._lock:
            return self._phase

    @property
    def refresh_cycles(self) -> int:
        """Number of refresh cycles started so far."""
        with self._lock:
            return self._refresh_cycles

    def is_credential_expired(self, error: NetworkError) -> bool:
        """True if ``error`` means the access token is no longer accepted."""
        return isinstance(error, ServerError) and error.status_code in self.expired_status_codes

    def on_failure(self, request: RequestDescriptor, error: NetworkError) -> "Future[RetryResult]":
        """
        Decide what a failed request should do next.

        Args:
            request: The request as originally sent (before adaptation)
            error: Classified error of that attempt

        Returns:
            Future resolving to a RetryResult. Already resolved unless the
            request has to wait for a refresh.
        """
        waiter: "Future[RetryResult]" = Future()

        if not self.is_credential_expired(error) or request.retry_count > 0:
            waiter.set_result(RetryResult.do_not_retry(error))
            return waiter

        with self._lock:
            start_refresh = self._phase is RefreshPhase.IDLE
            if start_refresh:
                self._phase = RefreshPhase.REFRESHING
                self._refresh_cycles += 1
                self._waiters = [(waiter, error)]
            else:
                self._waiters.append((waiter, error))

        if start_refresh:
            logger.info(f"Access token rejected ({error}), starting token refresh")
            self._launch_refresh()
        else:
            logger.debug("Token refresh in progress, queued request for retry")

        return waiter

    def _launch_refresh(self) -> None:
        thread = threading.Thread(
            target=self._run_refresh_cycle, name="authrelay-token-refresh", daemon=True
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.error(f"Could not start token refresh: {e}")
            self._complete_cycle(succeeded=False)

    def _run_refresh_cycle(self) -> None:
        succeeded = self._refresh_tokens()
        self._complete_cycle(succeeded)

    def _refresh_tokens(self) -> bool:
        """
        Run the refresh operation and persist its result.

        Returns:
            True if a new token pair was obtained and saved
        """
        refresh_token = self.token_storage.get_refresh_token()
        if not refresh_token:
            logger.warning("No refresh token available, cannot refresh access token")
            return False

        try:
            tokens = self.token_refresher(refresh_token)
        except Exception as e:
            logger.warning(f"Token refresh failed: {e}")
            return False

        try:
            self.token_storage.save_token_pair(tokens)
        except Exception as e:
            logger.error(f"Refreshed tokens could not be saved: {e}")
            return False

        logger.info("Successfully refreshed tokens")
        return True

    def _complete_cycle(self, succeeded: bool) -> None:
        """Return to IDLE, then resolve every waiter of the finished cycle."""
        with self._lock:
            waiters = self._waiters
            self._waiters = []
            self._phase = RefreshPhase.IDLE

        for waiter, error in waiters:
            # False means the caller cancelled its waiter and is gone
            if not waiter.set_running_or_notify_cancel():
                continue
            if succeeded:
                waiter.set_result(RetryResult.retry())
            else:
                waiter.set_result(RetryResult.do_not_retry(error))

        logger.debug(
            f"Token refresh {'succeeded' if succeeded else 'failed'}, "
            f"resolved {len(waiters)} waiting request(s)"
        )
