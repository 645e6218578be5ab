"""
Transport Protocol - defines the contract for chat-completion backends.

This is the WHAT (interface), not the HOW (implementation).
See http.py for the httpx implementation.
"""

from typing import AsyncIterator, Protocol

from modelcurl.config import (
    ConnectionTestResult,
    Endpoint,
    GenerationRequest,
    GenerationResponse,
)


class Transport(Protocol):
    """
    Contract for sending generation requests to an endpoint.

    Implementations must provide:
    - Unary completion (send_completion)
    - Streaming completion (stream_completion)
    - Model discovery (get_available_models)
    - Connectivity check (check_connection)
    """

    async def send_completion(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
    ) -> GenerationResponse:
        """
        Send one request and wait for the full response.

        Raises:
            NetworkError, HTTPError (AuthError for 401/403), ParseError
        """
        ...

    def stream_completion(
        self,
        endpoint: Endpoint,
        request: GenerationRequest,
    ) -> AsyncIterator[str]:
        """
        Stream content tokens as they arrive.

        Each iterator belongs to exactly one request, so tokens from a
        superseded call can never be observed by a later consumer.

        Yields:
            Non-empty content deltas, in arrival order

        Raises:
            NetworkError, HTTPError (AuthError for 401/403)
        """
        ...

    async def get_available_models(self, endpoint: Endpoint) -> list[str]:
        """
        Return model IDs served by the endpoint, in server order.

        Raises:
            NetworkError, AuthError, HTTPError, ParseError
        """
        ...

    async def check_connection(self, endpoint: Endpoint) -> ConnectionTestResult:
        """Check the endpoint. Failures are reported in the result, not raised."""
        ...
