"""
HttpTransport - httpx implementation of the Transport protocol.

Thin wrapper over the request functions in modelcurl.core that carries the
configured timeout.
"""

from typing import AsyncGenerator, Optional

from modelcurl import core
from modelcurl.config import (
    ConnectionTestResult,
    Endpoint,
    GenerationRequest,
    GenerationResponse,
    get_timeout_seconds,
)


class HttpTransport:
    """
    OpenAI-compatible HTTP implementation of Transport.

    Talks to any server exposing {url}/chat/completions and {url}/models.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Args:
            timeout_seconds: Per-request timeout. Falls back to
                MODELCURL_TIMEOUT_SECONDS.
        """
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else get_timeout_seconds()
        )

    async def send_completion(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
    ) -> GenerationResponse:
        return await core.send_completion(endpoint, request, self.timeout_seconds)

    async def stream_completion(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
    ) -> AsyncGenerator[str, None]:
        async for token in core.stream_completion(endpoint, request, self.timeout_seconds):
            yield token

    async def get_available_models(self, endpoint: Endpoint) -> list[str]:
        return await core.get_available_models(endpoint)

    async def check_connection(self, endpoint: Endpoint) -> ConnectionTestResult:
        return await core.check_connection(endpoint)
