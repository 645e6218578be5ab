"""
Request session: the state a display layer renders for one generation flow.

Holds the accumulated response text, the latest PerformanceMetrics, the
current error message (auto-dismissed after ERROR_DISMISS_SECONDS) and a busy
flag. Only one request may be in flight per session.
"""

import asyncio
import logging
import time
import uuid
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from modelcurl.adapters.base import Transport
from modelcurl.config import (
    ERROR_DISMISS_SECONDS,
    Endpoint,
    GenerationRequest,
    GenerationResponse,
    PerformanceMetrics,
    RequestHistoryItem,
)
from modelcurl.core import ModelCurlError
from modelcurl.telemetry import Clock, StreamTelemetry, monotonic_ms, unary_metrics

logger = logging.getLogger(__name__)


class RequestInFlightError(ModelCurlError):
    """A request was started while the previous one had not settled."""
    pass


class SessionPhase(str, Enum):
    IDLE = "idle"
    DISPATCHED = "dispatched"
    RECEIVING = "receiving"
    COMPLETED = "completed"
    FAILED = "failed"


class HistoryStore(Protocol):
    def add_history_item(self, item: RequestHistoryItem) -> None: ...


TokenCallback = Callable[[str], Optional[Awaitable[None]]]


class RequestSession:
    """
    Drives one request at a time through a Transport and tracks its output.

    The display layer reads `response`, `metrics`, `ttft_ms`, `error` and
    `is_loading`. Clearing the display does not cancel an in-flight call.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Clock = monotonic_ms,
        error_dismiss_seconds: float = ERROR_DISMISS_SECONDS,
        history: Optional[HistoryStore] = None,
    ):
        self.transport = transport
        self.history = history
        self._clock = clock
        self._error_dismiss_seconds = error_dismiss_seconds
        self._dismiss_handle: Optional[asyncio.TimerHandle] = None

        self.phase = SessionPhase.IDLE
        self.is_loading = False
        self.response = ""
        self.metrics: Optional[PerformanceMetrics] = None
        self.ttft_ms: Optional[float] = None
        self.error: Optional[str] = None
        self.last_response: Optional[GenerationResponse] = None

    # ─────────────────────────────────────────────────────────────────
    # ERROR CHANNEL
    # ─────────────────────────────────────────────────────────────────

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _set_error(self, message: str) -> None:
        self._cancel_dismiss()
        self.error = message
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No loop (CLI teardown); error stays until dismissed
        self._dismiss_handle = loop.call_later(
            self._error_dismiss_seconds, self.dismiss_error
        )

    def dismiss_error(self) -> None:
        """Clear the current error message."""
        self._cancel_dismiss()
        self.error = None

    def clear_response(self) -> None:
        """Clear displayed output, metrics and error."""
        self.response = ""
        self.metrics = None
        self.ttft_ms = None
        self.last_response = None
        self.dismiss_error()

    # ─────────────────────────────────────────────────────────────────
    # REQUEST FLOW
    # ─────────────────────────────────────────────────────────────────

    async def send_request(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
        on_token: Optional[TokenCallback] = None,
    ) -> None:
        """
        Run one request to completion.

        Transport errors are surfaced through `error`, not raised; text that
        streamed before a failure stays in `response`.

        Raises:
            RequestInFlightError: if a previous request has not settled
        """
        if self.is_loading:
            raise RequestInFlightError("A request is already in progress")

        self.is_loading = True
        self.dismiss_error()
        self.response = ""
        self.metrics = None
        self.ttft_ms = None
        self.last_response = None

        try:
            if request.stream:
                await self._run_streaming(endpoint, request, on_token)
            else:
                await self._run_unary(endpoint, request)
        except ModelCurlError as e:
            self.phase = SessionPhase.FAILED
            self.metrics = None
            logger.warning(f"Request to '{endpoint.name}' failed: {e}")
            self._set_error(str(e))
            return
        finally:
            self.is_loading = False

        self.phase = SessionPhase.COMPLETED
        self._record_history(endpoint, request)

    async def _run_streaming(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
        on_token: Optional[TokenCallback],
    ) -> None:
        telemetry = StreamTelemetry.dispatch(self._clock)
        self.phase = SessionPhase.DISPATCHED

        async for token in self.transport.stream_completion(endpoint, request):
            telemetry.record_token(token, self._clock())
            self.phase = SessionPhase.RECEIVING
            self.response += token
            if self.ttft_ms is None:
                self.ttft_ms = telemetry.ttft_ms
            if on_token is not None:
                result = on_token(token)
                if asyncio.iscoroutine(result):
                    await result

        self.metrics = telemetry.finalize(self._clock())

    async def _run_unary(self, endpoint: Endpoint, request: GenerationRequest) -> None:
        start = self._clock()
        self.phase = SessionPhase.DISPATCHED
        result = await self.transport.send_completion(endpoint, request)
        end = self._clock()

        self.last_response = result
        self.response = result.content
        self.metrics = unary_metrics(start, end, result.usage)
        self.ttft_ms = self.metrics.ttft_ms

    def _record_history(self, endpoint: Endpoint, request: GenerationRequest) -> None:
        if self.history is None or self.metrics is None:
            return
        self.history.add_history_item(RequestHistoryItem(
            id=str(uuid.uuid4()),
            timestamp=int(time.time() * 1000),
            endpoint_name=endpoint.name,
            model=request.model,
            prompt=request.prompt,
            response=self.response,
            metrics=self.metrics,
            stream=request.stream,
        ))
