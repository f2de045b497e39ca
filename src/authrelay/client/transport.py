"""
HTTP transport.

A transport performs the actual network I/O for one request and reports the
result as an ``Outcome``. It never raises for network problems and never
interprets status codes; both are left to the error handler.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

import requests

from ..models import Outcome, RawResponse

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Dispatches requests. Implementations must be safe to call from several threads."""

    @abstractmethod
    def dispatch(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
        data: Union[bytes, Dict[str, Any], None] = None,
    ) -> Outcome:
        """
        Send one request.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Request headers
            params: Query parameters
            data: Encoded body bytes, or a dict to send form-encoded

        Returns:
            Outcome with either the response or the dispatch error
        """


class RequestsTransport(Transport):
    """
    Transport backed by ``requests.Session`` (connection pooling, keep-alive).

    Without a session argument each dispatching thread gets its own session.
    A session passed in is shared by every thread, so it must tolerate
    concurrent use.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30):
        """
        Initialize transport.

        Args:
            session: Session shared by all threads (one session per thread if not provided)
            timeout: Request timeout in seconds
        """
        self._shared_session = session
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        """Session used by the calling thread."""
        if self._shared_session is not None:
            return self._shared_session

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def dispatch(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
        data: Union[bytes, Dict[str, Any], None] = None,
    ) -> Outcome:
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                data=data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            return Outcome(error=e)

        return Outcome(
            response=RawResponse(
                status_code=response.status_code,
                headers=dict(response.headers),
                body=response.content,
            )
        )

    def close(self) -> None:
        """Close the shared session, or every per-thread session created so far."""
        if self._shared_session is not None:
            self._shared_session.close()
            return

        with self._sessions_lock:
            sessions = self._sessions
            self._sessions = []
        for session in sessions:
            session.close()
