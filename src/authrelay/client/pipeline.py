"""
Request pipeline.

One call to ``RequestPipeline.send`` is one logical request:

1. the adapter attaches the current credential
2. the transport dispatches the request
3. the error handler classifies the outcome
4. on failure the refresh coordinator decides between one retry (back to
   step 1 with the fresh credential) and raising the error
5. on success the codec decodes the body

A logical request reaches the transport at most twice.
"""

import logging
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Dict, Optional, Type, TypeVar

from ..auth.adapters import RequestAdapter
from ..auth.coordinator import AuthRefreshCoordinator, RetryResult
from ..exceptions import DecodingError, NetworkError, NoDataError, NoResponseError
from ..models import ApiResponse, BodyEncoding, Outcome, RequestDescriptor
from .codec import BodyCodec, JSONCodec
from .error_handler import DefaultNetworkErrorHandler, NetworkErrorHandler
from .transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REDACTED_HEADERS = {"authorization", "cookie", "proxy-authorization"}


def _redact(headers: Dict[str, str]) -> Dict[str, str]:
    return {k: ("***" if k.lower() in _REDACTED_HEADERS else v) for k, v in headers.items()}


class RequestPipeline:
    """
    Runs requests through adapt → dispatch → classify → retry-once → decode.

    Example:
        pipeline = RequestPipeline(
            RequestsTransport(),
            adapter=BearerTokenAdapter(storage),
            coordinator=AuthRefreshCoordinator(storage, refresher),
        )
        user = pipeline.send(RequestDescriptor("GET", url), User)
    """

    def __init__(
        self,
        transport: Transport,
        adapter: Optional[RequestAdapter] = None,
        error_handler: Optional[NetworkErrorHandler] = None,
        coordinator: Optional[AuthRefreshCoordinator] = None,
        codec: Optional[BodyCodec] = None,
        log_traffic: bool = False,
        refresh_timeout: Optional[float] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            transport: Performs network I/O
            adapter: Attaches credentials (requests go out unchanged if None)
            error_handler: Classification policy (default policy if None)
            coordinator: Token refresh coordinator (errors are final if None)
            codec: Body codec (JSON if None)
            log_traffic: Log every request and response at DEBUG level
            refresh_timeout: Longest time to wait for a token refresh before
                giving up with the original error (no limit if None)
        """
        self.transport = transport
        self.adapter = adapter
        self.error_handler = error_handler or DefaultNetworkErrorHandler()
        self.coordinator = coordinator
        self.codec = codec or JSONCodec()
        self.log_traffic = log_traffic
        self.refresh_timeout = refresh_timeout

    def send(self, request: RequestDescriptor, response_type: Type[T] = Any) -> T:
        """
        Send ``request`` and return the decoded body.

        Raises:
            NetworkError: One of TransportError, NoResponseError, NoDataError,
                ServerError or DecodingError
        """
        return self.send_response(request, response_type).value

    def send_response(
        self, request: RequestDescriptor, response_type: Type[T] = Any
    ) -> ApiResponse[T]:
        """
        Send ``request`` and return the decoded body with response metadata.

        Raises:
            NetworkError: Same as ``send``
        """
        while True:
            outcome = self._dispatch(request)

            error = self.error_handler.transform(outcome.response, outcome.error)
            if error is None:
                return self._decode(outcome, response_type)

            result = self._resolve_failure(request, error)
            if not result.should_retry or request.retry_count > 0:
                raise result.error or error

            logger.info(f"Retrying {request.method} {request.url} with refreshed token")
            request = request.for_retry()

    def _dispatch(self, request: RequestDescriptor) -> Outcome:
        adapted = self.adapter.adapt(request) if self.adapter else request

        headers = {"Accept": "application/json", **adapted.headers}
        data: Any = None
        if adapted.body is not None:
            if adapted.encoding is BodyEncoding.FORM:
                data = adapted.body
            else:
                data = self.codec.encode(adapted.body)
                headers.setdefault("Content-Type", self.codec.content_type)

        if self.log_traffic:
            logger.debug(f"===== REQUEST ===== {adapted.method} {adapted.url}")
            logger.debug(f"  Headers: {_redact(headers)}")
            if adapted.params:
                logger.debug(f"  Params: {adapted.params}")

        outcome = self.transport.dispatch(
            adapted.method, adapted.url, headers, params=adapted.params, data=data
        )

        if self.log_traffic:
            if outcome.response is not None:
                logger.debug(
                    f"===== RESPONSE ===== {outcome.response.status_code} "
                    f"{outcome.response.text or ''}"
                )
            else:
                logger.debug(f"===== RESPONSE ===== none ({outcome.error})")

        return outcome

    def _resolve_failure(self, request: RequestDescriptor, error: NetworkError) -> RetryResult:
        if self.coordinator is None:
            return RetryResult.do_not_retry(error)

        waiter = self.coordinator.on_failure(request, error)
        try:
            return waiter.result(timeout=self.refresh_timeout)
        except FuturesTimeoutError:
            # Resolution may have won the race against the timeout
            if not waiter.cancel():
                return waiter.result()
            logger.warning(
                f"Gave up waiting for token refresh after {self.refresh_timeout}s: "
                f"{request.method} {request.url}"
            )
            return RetryResult.do_not_retry(error)

    def _decode(self, outcome: Outcome, response_type: Type[T]) -> ApiResponse[T]:
        # A custom error handler may accept outcomes the default one would not
        response = outcome.response
        if response is None:
            raise NoResponseError()
        if response.body is None:
            raise NoDataError()

        try:
            value = self.codec.decode(response.body, response_type)
        except DecodingError:
            raise
        except (ValueError, TypeError) as e:
            raise DecodingError(e) from e

        return ApiResponse(value=value, data=response.body, response=response)
