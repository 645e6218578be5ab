"""
Core logic: request construction, chat-completion transport, response parsing.
"""

import json
import logging
import time
from typing import Any, AsyncGenerator, Optional

import httpx

from modelcurl.config import (
    ConnectionTestResult,
    Endpoint,
    GenerationRequest,
    GenerationResponse,
    ThinkingBlock,
    UsageMetrics,
    DEFAULT_TIMEOUT_SECONDS,
)
from modelcurl.provider import ReasoningProvider, detect_provider
from modelcurl.reasoning import map_reasoning_params

logger = logging.getLogger(__name__)


class ModelCurlError(Exception):
    """Base class for errors surfaced to the user."""
    pass


class NetworkError(ModelCurlError):
    """The endpoint could not be reached (DNS, refused, timeout, reset)."""
    pass


class HTTPError(ModelCurlError):
    """The endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class AuthError(HTTPError):
    """The endpoint rejected the credentials (401/403)."""
    pass


class ParseError(ModelCurlError):
    """The response body was not what an OpenAI-compatible API returns."""
    pass


def parse_error_body(body: bytes | str) -> str:
    """
    Extract the provider message from an error response body.

    JSON bodies of the form {"error": {"message": ...}} yield the message;
    anything else is returned whole.
    """
    text = body.decode(errors="replace") if isinstance(body, bytes) else body
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return text or "Unknown error"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        if isinstance(data.get("message"), str):
            return data["message"]
    return text


def _raise_for_status(status_code: int, body: bytes | str, prefix: str) -> None:
    if status_code < 400:
        return
    msg = f"{prefix} with status {status_code}: {parse_error_body(body)}"
    if status_code in (401, 403):
        raise AuthError(msg, status_code)
    raise HTTPError(msg, status_code)


# ─────────────────────────────────────────────────────────────────────
# REQUEST BUILDER
# ─────────────────────────────────────────────────────────────────────

def build_headers(endpoint: Endpoint) -> list[tuple[str, str]]:
    """
    Build outbound headers for an endpoint.

    Returned as an ordered list so duplicate custom header names survive.
    """
    headers = [("Content-Type", "application/json")]
    if endpoint.api_key:
        headers.append(("Authorization", f"Bearer {endpoint.api_key}"))
    for key, value in endpoint.headers:
        if key.strip():
            headers.append((key, value))
    return headers


def build_request_body(request: GenerationRequest, stream: bool) -> dict[str, Any]:
    """
    Compose the chat-completion payload, including provider reasoning fields.

    The reasoning provider is derived from request.model on every call.
    """
    body: dict[str, Any] = {
        "model": request.model,
        "messages": [m.model_dump() for m in request.messages],
        "temperature": request.temperature,
        "stream": stream,
    }

    if request.reasoning_config is None:
        body["max_tokens"] = request.max_tokens
        return body

    provider = detect_provider(request.model)
    params = map_reasoning_params(provider, request.reasoning_config)

    if provider is ReasoningProvider.OPENAI:
        # Reasoning models count hidden deliberation against this limit
        body["max_completion_tokens"] = params["max_completion_tokens"]
        body["reasoning_effort"] = params["reasoning_effort"]
    elif provider is ReasoningProvider.DEEPSEEK:
        body["max_tokens"] = request.max_tokens
        body["thinking"] = {
            "type": "enabled" if params["enable_thinking"] else "disabled"
        }
    elif provider is ReasoningProvider.QWEN:
        body["max_tokens"] = request.max_tokens
        if params["enable_thinking"]:
            body["enable_thinking"] = True
            body["thinking_budget"] = params["thinking_budget_tokens"]
    elif provider is ReasoningProvider.CLAUDE:
        body["max_tokens"] = request.max_tokens
        if params["enable_thinking"]:
            body["thinking"] = {
                "type": "enabled",
                "budget_tokens": params["thinking_budget_tokens"],
            }
    else:
        body["max_tokens"] = request.max_tokens

    return body


# ─────────────────────────────────────────────────────────────────────
# RESPONSE PARSING
# ─────────────────────────────────────────────────────────────────────

def _text(value: Any) -> Optional[str]:
    """value if it is a string, else None (providers are not always well-typed)."""
    return value if isinstance(value, str) else None


def _parse_usage(data: Any) -> Optional[UsageMetrics]:
    if not isinstance(data, dict):
        return None
    try:
        prompt_tokens = int(data["prompt_tokens"])
        completion_tokens = int(data["completion_tokens"])
        total_tokens = int(data["total_tokens"])
    except (KeyError, TypeError, ValueError):
        return None

    reasoning_tokens = data.get("reasoning_tokens")
    if reasoning_tokens is None:
        details = data.get("completion_tokens_details")
        if isinstance(details, dict):
            reasoning_tokens = details.get("reasoning_tokens")
    try:
        reasoning_tokens = int(reasoning_tokens) if reasoning_tokens is not None else None
    except (TypeError, ValueError):
        reasoning_tokens = None

    return UsageMetrics(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        reasoning_tokens=reasoning_tokens,
    )


def parse_completion_response(data: Any, model: str) -> GenerationResponse:
    """
    Convert an OpenAI-compatible completion body into a GenerationResponse.

    Reasoning data is extracted per provider:
    - DeepSeek/Qwen: message.reasoning_content, kept apart from content
    - Claude: "thinking" content blocks, kept as separate ordered blocks
    - OpenAI: no deliberation text at all, only usage.reasoning_tokens
    """
    try:
        choice = data["choices"][0]
    except (KeyError, IndexError, TypeError) as e:
        raise ParseError(f"Failed to parse response: missing choices ({e})") from e
    if not isinstance(choice, dict):
        raise ParseError("Failed to parse response: choice is not an object")
    message = choice.get("message") or {}
    if not isinstance(message, dict):
        raise ParseError("Failed to parse response: message is not an object")

    provider = detect_provider(model)
    raw_content = message.get("content")

    thinking_blocks: list[ThinkingBlock] = []
    if isinstance(raw_content, list):
        text_parts = []
        for block in raw_content:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text":
                text_parts.append(_text(block.get("text")) or "")
            elif block.get("type") == "thinking" and provider is ReasoningProvider.CLAUDE:
                thinking_blocks.append(ThinkingBlock(
                    content=_text(block.get("thinking")) or "",
                    summary=_text(block.get("summary")),
                ))
        content = "".join(text_parts)
    else:
        content = _text(raw_content) or ""

    reasoning_content = None
    if provider in (ReasoningProvider.DEEPSEEK, ReasoningProvider.QWEN):
        reasoning_content = _text(message.get("reasoning_content"))

    return GenerationResponse(
        content=content,
        usage=_parse_usage(data.get("usage")),
        finish_reason=_text(choice.get("finish_reason")) or "stop",
        reasoning_content=reasoning_content,
        thinking_blocks=thinking_blocks,
        reasoning_provider=None if provider is ReasoningProvider.NONE else provider,
    )


# ─────────────────────────────────────────────────────────────────────
# LLM CLIENT
# ─────────────────────────────────────────────────────────────────────

async def send_completion(
    endpoint: Endpoint,
    request: GenerationRequest,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> GenerationResponse:
    """
    Get a complete (non-streaming) response from an endpoint.
    Raises NetworkError, HTTPError/AuthError or ParseError.
    """
    body = build_request_body(request, stream=False)
    url = f"{endpoint.url}/chat/completions"
    logger.debug(f"POST {url} model={request.model} stream=False")

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.post(url, json=body, headers=build_headers(endpoint))
    except httpx.HTTPError as e:
        logger.warning(f"Request to {url} failed: {e}")
        raise NetworkError(f"Request failed: {e}") from e

    _raise_for_status(response.status_code, response.content, "Request failed")

    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"Failed to parse response: {e}") from e

    return parse_completion_response(data, request.model)


async def stream_completion(
    endpoint: Endpoint,
    request: GenerationRequest,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> AsyncGenerator[str, None]:
    """
    Stream a completion from an endpoint.
    Yields non-empty content deltas in arrival order.
    Raises NetworkError or HTTPError/AuthError.
    """
    body = build_request_body(request, stream=True)
    url = f"{endpoint.url}/chat/completions"
    logger.debug(f"POST {url} model={request.model} stream=True")

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            async with client.stream(
                "POST",
                url,
                json=body,
                headers=build_headers(endpoint),
            ) as response:
                if response.status_code >= 400:
                    # Read the error body for streaming responses
                    error_body = await response.aread()
                    _raise_for_status(response.status_code, error_body, "Request failed")

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[5:].strip()
                    if data == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data)
                    except json.JSONDecodeError:
                        continue
                    if not isinstance(chunk, dict):
                        continue
                    choices = chunk.get("choices")
                    if not isinstance(choices, list) or not choices:
                        continue
                    if not isinstance(choices[0], dict):
                        continue
                    delta = choices[0].get("delta")
                    if not isinstance(delta, dict):
                        continue
                    content = delta.get("content")
                    if isinstance(content, str) and content:
                        yield content
    except httpx.HTTPError as e:
        logger.warning(f"Stream from {url} failed: {e}")
        raise NetworkError(f"Stream error: {e}") from e


async def get_available_models(
    endpoint: Endpoint,
    timeout_seconds: float = 10.0,
) -> list[str]:
    """
    Fetch model IDs from the endpoint's /models API, in server order.
    Raises NetworkError, HTTPError/AuthError or ParseError.
    """
    url = f"{endpoint.url}/models"
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(url, headers=build_headers(endpoint))
    except httpx.HTTPError as e:
        raise NetworkError(f"Request failed: {e}") from e

    _raise_for_status(response.status_code, response.content, "Failed to fetch models")

    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"Failed to parse response: {e}") from e

    models = data.get("data") if isinstance(data, dict) else None
    if not isinstance(models, list):
        raise ParseError("Invalid response format: 'data' field not found")

    return [m["id"] for m in models if isinstance(m, dict) and isinstance(m.get("id"), str)]


async def check_connection(
    endpoint: Endpoint,
    timeout_seconds: float = 10.0,
) -> ConnectionTestResult:
    """Check an endpoint with a lightweight GET /models. Never raises."""
    url = f"{endpoint.url}/models"
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(url, headers=build_headers(endpoint))
    except httpx.HTTPError as e:
        return ConnectionTestResult(success=False, message=f"Connection failed: {e}")

    elapsed_ms = (time.perf_counter() - start) * 1000
    if response.status_code >= 400:
        return ConnectionTestResult(
            success=False,
            message=(
                f"Endpoint returned error {response.status_code}: "
                f"{parse_error_body(response.content)}"
            ),
            latency_ms=elapsed_ms,
        )

    return ConnectionTestResult(
        success=True,
        message=f"Connection successful! Response time: {elapsed_ms:.0f}ms",
        latency_ms=elapsed_ms,
    )
