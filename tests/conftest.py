"""Shared test fixtures for modelcurl tests."""

import asyncio

import pytest

from modelcurl.config import ConnectionTestResult, Endpoint, GenerationRequest, Message


# ─────────────────────────────────────────────────────────────────────
# MOCK DATA
# ─────────────────────────────────────────────────────────────────────

MOCK_URL = "http://192.168.1.10:1234/v1"
MOCK_API_KEY = "sk-test-123"

MOCK_MODEL_1 = "llama-3.2-3b-instruct"
MOCK_MODEL_2 = "qwen2.5-7b-instruct"
MOCK_MODELS = [MOCK_MODEL_1, MOCK_MODEL_2]

MOCK_MODELS_RESPONSE = {
    "object": "list",
    "data": [
        {"id": MOCK_MODEL_1, "object": "model"},
        {"id": MOCK_MODEL_2, "object": "model"},
    ]
}

MOCK_COMPLETION_RESPONSE = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "created": 1699000000,
    "model": MOCK_MODEL_1,
    "choices": [
        {
            "index": 0,
            "message": {
                "role": "assistant",
                "content": "The capital of France is Paris."
            },
            "finish_reason": "stop"
        }
    ],
    "usage": {
        "prompt_tokens": 10,
        "completion_tokens": 8,
        "total_tokens": 18
    }
}

MOCK_STREAMING_CHUNKS = [
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":"The"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" capital"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" is"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" Paris."},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}',
    'data: [DONE]',
]


def sse_body(chunks: list[str]) -> str:
    """Join SSE lines into a response body."""
    return "\n\n".join(chunks) + "\n\n"


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeTransport:
    """Scripted Transport: yields tokens with clock advances, then optionally fails."""

    def __init__(self, clock: FakeClock, tokens=(), step_ms=10.0, error=None,
                 response=None, models=()):
        self.clock = clock
        self.tokens = list(tokens)
        self.step_ms = step_ms
        self.error = error
        self.response = response
        self.models = list(models)
        self.gate: asyncio.Event | None = None

    async def send_completion(self, endpoint, request):
        self.clock.advance(self.step_ms)
        if self.error:
            raise self.error
        return self.response

    async def stream_completion(self, endpoint, request):
        for token in self.tokens:
            if self.gate is not None:
                await self.gate.wait()
            self.clock.advance(self.step_ms)
            yield token
        if self.error:
            raise self.error

    async def get_available_models(self, endpoint):
        if self.error:
            raise self.error
        return list(self.models)

    async def check_connection(self, endpoint):
        return ConnectionTestResult(success=True, message="Connection successful! Response time: 1ms")


# ─────────────────────────────────────────────────────────────────────
# FIXTURES - Data Models
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def endpoint():
    """A saved endpoint pointing at the mock server."""
    return Endpoint(
        id="endpoint-1",
        name="Local LM Studio",
        url=MOCK_URL,
        api_key=MOCK_API_KEY,
        headers=[("X-Org", "acme")],
        model=MOCK_MODEL_1,
    )


@pytest.fixture
def sample_request():
    """A plain streaming request."""
    return GenerationRequest(
        model=MOCK_MODEL_1,
        messages=[
            Message(role="system", content="You are terse."),
            Message(role="user", content="What is the capital of France?"),
        ],
        temperature=0.7,
        max_tokens=256,
        stream=True,
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


# ─────────────────────────────────────────────────────────────────────
# FIXTURES - HTTP Mocking
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_models_response():
    """Return mock /models response."""
    return MOCK_MODELS_RESPONSE.copy()


@pytest.fixture
def mock_completion_response():
    """Return mock /chat/completions response."""
    return MOCK_COMPLETION_RESPONSE.copy()


# ─────────────────────────────────────────────────────────────────────
# FIXTURES - Temporary Files
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point MODELCURL_CONFIG_DIR at a temp directory."""
    monkeypatch.setenv("MODELCURL_CONFIG_DIR", str(tmp_path))
    return tmp_path
