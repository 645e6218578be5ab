"""Tests for modelcurl.session - request lifecycle and error channel."""

import asyncio

import httpx
import pytest
import respx

from modelcurl.adapters import HttpTransport
from modelcurl.config import GenerationResponse, UsageMetrics
from modelcurl.core import HTTPError, NetworkError
from modelcurl.session import RequestInFlightError, RequestSession, SessionPhase

from tests.conftest import FakeTransport, MOCK_URL, sse_body


class MemoryHistory:
    def __init__(self):
        self.items = []

    def add_history_item(self, item):
        self.items.append(item)


class TestStreamingRequest:

    @pytest.mark.asyncio
    async def test_accumulates_text_and_metrics(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, tokens=["Hel", "lo", "!"], step_ms=20)
        session = RequestSession(transport, clock=fake_clock)

        seen = []
        await session.send_request(endpoint, sample_request, on_token=seen.append)

        assert session.response == "Hello!"
        assert seen == ["Hel", "lo", "!"]
        assert session.phase is SessionPhase.COMPLETED
        assert session.is_loading is False
        assert session.metrics.ttft_ms == 20
        assert session.metrics.total_tokens == 3
        assert session.metrics.avg_tpot_ms == 20
        assert session.error is None

    @pytest.mark.asyncio
    async def test_async_token_callback(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, tokens=["a", "b"])
        session = RequestSession(transport, clock=fake_clock)

        seen = []

        async def on_token(token):
            seen.append(token)

        await session.send_request(endpoint, sample_request, on_token=on_token)

        assert seen == ["a", "b"]

    @pytest.mark.asyncio
    async def test_mid_stream_failure_keeps_partial_text(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(
            fake_clock, tokens=["partial ", "text"], error=NetworkError("Stream error: reset")
        )
        session = RequestSession(transport, clock=fake_clock)

        await session.send_request(endpoint, sample_request)

        assert session.response == "partial text"
        assert session.error == "Stream error: reset"
        assert session.metrics is None
        assert session.phase is SessionPhase.FAILED
        assert session.is_loading is False

    @pytest.mark.asyncio
    async def test_ttft_visible_while_streaming(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, tokens=[" ", "x", "y"], step_ms=5)
        session = RequestSession(transport, clock=fake_clock)

        ttft_during = []
        await session.send_request(
            endpoint, sample_request, on_token=lambda t: ttft_during.append(session.ttft_ms)
        )

        assert ttft_during == [None, 10, 10]
        assert session.metrics is not None

    @pytest.mark.asyncio
    async def test_new_request_resets_previous_output(self, endpoint, sample_request, fake_clock):
        session = RequestSession(FakeTransport(fake_clock, tokens=["one"]), clock=fake_clock)
        await session.send_request(endpoint, sample_request)

        session.transport = FakeTransport(fake_clock, tokens=["two"])
        await session.send_request(endpoint, sample_request)

        assert session.response == "two"


class TestMalformedProviderPayloads:
    """Odd provider output ends in COMPLETED or FAILED, never an escaped exception."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_non_object_stream_chunks_skipped(self, endpoint, sample_request, fake_clock):
        respx.post(f"{MOCK_URL}/chat/completions").mock(
            return_value=httpx.Response(200, text=sse_body([
                'data: {"choices":[{"delta":{"content":"Hi"}}]}',
                "data: null",
                "data: [1]",
                'data: {"choices":["x"]}',
                "data: [DONE]",
            ]))
        )
        session = RequestSession(HttpTransport(timeout_seconds=5.0), clock=fake_clock)

        await session.send_request(endpoint, sample_request)

        assert session.phase is SessionPhase.COMPLETED
        assert session.response == "Hi"
        assert session.error is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_unary_body_reaches_error_channel(
        self, endpoint, sample_request, fake_clock
    ):
        respx.post(f"{MOCK_URL}/chat/completions").mock(
            return_value=httpx.Response(200, json={"choices": [{"message": "str"}]})
        )
        session = RequestSession(HttpTransport(timeout_seconds=5.0), clock=fake_clock)
        request = sample_request.model_copy(update={"stream": False})

        await session.send_request(endpoint, request)

        assert session.phase is SessionPhase.FAILED
        assert session.error.startswith("Failed to parse response")
        assert session.is_loading is False


class TestUnaryRequest:

    @pytest.mark.asyncio
    async def test_unary_metrics(self, endpoint, sample_request, fake_clock):
        response = GenerationResponse(
            content="Paris",
            usage=UsageMetrics(prompt_tokens=5, completion_tokens=7, total_tokens=12),
        )
        transport = FakeTransport(fake_clock, step_ms=300, response=response)
        session = RequestSession(transport, clock=fake_clock)
        request = sample_request.model_copy(update={"stream": False})

        await session.send_request(endpoint, request)

        assert session.response == "Paris"
        assert session.last_response is response
        assert session.metrics.ttft_ms == 300
        assert session.metrics.total_latency_ms == 300
        assert session.metrics.total_tokens == 7

    @pytest.mark.asyncio
    async def test_unary_http_error(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(
            fake_clock, error=HTTPError("Request failed with status 500: boom", 500)
        )
        session = RequestSession(transport, clock=fake_clock)
        request = sample_request.model_copy(update={"stream": False})

        await session.send_request(endpoint, request)

        assert session.error == "Request failed with status 500: boom"
        assert session.response == ""


class TestInFlightFencing:

    @pytest.mark.asyncio
    async def test_second_request_refused_while_busy(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, tokens=["a", "b"])
        transport.gate = asyncio.Event()
        session = RequestSession(transport, clock=fake_clock)

        first = asyncio.create_task(session.send_request(endpoint, sample_request))
        await asyncio.sleep(0)
        assert session.is_loading is True

        with pytest.raises(RequestInFlightError):
            await session.send_request(endpoint, sample_request)

        transport.gate.set()
        await first
        assert session.response == "ab"
        assert session.is_loading is False


class TestErrorChannel:

    @pytest.mark.asyncio
    async def test_error_auto_dismisses(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, error=NetworkError("down"))
        session = RequestSession(transport, clock=fake_clock, error_dismiss_seconds=0.01)

        await session.send_request(endpoint, sample_request)
        assert session.error == "down"

        await asyncio.sleep(0.05)
        assert session.error is None

    @pytest.mark.asyncio
    async def test_manual_dismiss(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, error=NetworkError("down"))
        session = RequestSession(transport, clock=fake_clock)

        await session.send_request(endpoint, sample_request)
        session.dismiss_error()

        assert session.error is None

    @pytest.mark.asyncio
    async def test_new_error_restarts_timer(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, error=NetworkError("first"))
        session = RequestSession(transport, clock=fake_clock, error_dismiss_seconds=0.05)

        await session.send_request(endpoint, sample_request)
        await asyncio.sleep(0.03)
        transport.error = NetworkError("second")
        await session.send_request(endpoint, sample_request)
        await asyncio.sleep(0.03)

        assert session.error == "second"

    @pytest.mark.asyncio
    async def test_clear_response(self, endpoint, sample_request, fake_clock):
        transport = FakeTransport(fake_clock, tokens=["x"], error=NetworkError("late"))
        session = RequestSession(transport, clock=fake_clock)
        await session.send_request(endpoint, sample_request)

        session.clear_response()

        assert session.response == ""
        assert session.metrics is None
        assert session.ttft_ms is None
        assert session.error is None


class TestHistory:

    @pytest.mark.asyncio
    async def test_successful_request_recorded(self, endpoint, sample_request, fake_clock):
        history = MemoryHistory()
        session = RequestSession(
            FakeTransport(fake_clock, tokens=["Paris"]), clock=fake_clock, history=history
        )

        await session.send_request(endpoint, sample_request)

        assert len(history.items) == 1
        item = history.items[0]
        assert item.endpoint_name == endpoint.name
        assert item.prompt == "What is the capital of France?"
        assert item.response == "Paris"
        assert item.stream is True

    @pytest.mark.asyncio
    async def test_failed_request_not_recorded(self, endpoint, sample_request, fake_clock):
        history = MemoryHistory()
        session = RequestSession(
            FakeTransport(fake_clock, error=NetworkError("down")),
            clock=fake_clock, history=history,
        )

        await session.send_request(endpoint, sample_request)

        assert history.items == []
