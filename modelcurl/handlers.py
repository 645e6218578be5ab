"""
Gradio event handlers for modelcurl.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import gradio as gr

from modelcurl import state
from modelcurl.config import (
    Endpoint,
    GenerationRequest,
    ReasoningConfig,
    ReasoningEffort,
)
from modelcurl.core import ModelCurlError
from modelcurl.export import generate_json_report, generate_markdown_report
from modelcurl.parsers import build_messages, format_headers, parse_headers_input
from modelcurl.provider import detect_provider, get_provider_name, ReasoningProvider
from modelcurl.registry import EndpointValidationError
from modelcurl.ui_helpers import (
    format_error,
    format_metrics_markdown,
    format_reasoning_markdown,
    reasoning_controls_visibility,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────

def _endpoint_choices() -> list[tuple[str, str]]:
    return [(e.name, e.id) for e in state.registry.list()]


def _editor_values(endpoint: Optional[Endpoint]) -> tuple:
    """(id, name, url, api_key, headers_text, model) for the editor form."""
    if endpoint is None:
        return ("", "", "", "", "", "")
    return (
        endpoint.id or "",
        endpoint.name,
        endpoint.url,
        endpoint.api_key or "",
        format_headers(endpoint.headers),
        endpoint.model,
    )


def reasoning_updates(model: str) -> tuple:
    """gr.update()s for (group, effort, max_completion, thinking, budget)."""
    provider = detect_provider(model or "")
    visible = reasoning_controls_visibility(provider)
    label = "Reasoning"
    if provider is not ReasoningProvider.NONE:
        label = f"Reasoning ({get_provider_name(provider)})"
    return (
        gr.update(visible=visible["group"], label=label),
        gr.update(visible=visible["effort"]),
        gr.update(visible=visible["max_completion"]),
        gr.update(visible=visible["thinking"]),
        gr.update(visible=visible["budget"]),
    )


def _draft_endpoint(endpoint_id, name, url, api_key, headers_text, model) -> Endpoint:
    return Endpoint(
        id=endpoint_id or None,
        name=name or "",
        url=(url or "").strip().rstrip("/"),
        api_key=api_key or None,
        headers=parse_headers_input(headers_text),
        model=model or "",
    )


def _render_session() -> tuple:
    """(response, metrics, reasoning, error) for the output panel."""
    session = state.session
    return (
        session.response,
        format_metrics_markdown(session.metrics, session.ttft_ms),
        format_reasoning_markdown(session.last_response),
        format_error(session.error),
    )


# ─────────────────────────────────────────────────────────────────────
# ENDPOINTS
# ─────────────────────────────────────────────────────────────────────

async def load_endpoints() -> tuple:
    """
    Reload endpoints on app start.
    Returns (dropdown update, *editor values, *reasoning updates).
    """
    await state.registry.load()
    selected = state.registry.selected
    return (
        gr.update(choices=_endpoint_choices(), value=selected.id if selected else None),
        *_editor_values(selected),
        *reasoning_updates(selected.model if selected else ""),
    )


def select_endpoint(endpoint_id: Optional[str]) -> tuple:
    """Select an endpoint from the dropdown. Returns (*editor values, *reasoning updates)."""
    endpoint = state.registry.get(endpoint_id)
    state.registry.select(endpoint)
    return (
        *_editor_values(endpoint),
        *reasoning_updates(endpoint.model if endpoint else ""),
    )


def new_endpoint() -> tuple:
    """Blank the editor for a new endpoint."""
    return _editor_values(None)


async def save_endpoint(endpoint_id, name, url, api_key, headers_text, model) -> tuple:
    """Save the editor contents. Returns (status, dropdown update, endpoint_id)."""
    draft = _draft_endpoint(endpoint_id, name, url, api_key, headers_text, model)
    try:
        saved = await state.registry.save(draft)
    except EndpointValidationError as e:
        return f"❌ {e}", gr.update(), endpoint_id
    except OSError as e:
        return f"❌ Failed to save endpoint: {e}", gr.update(), endpoint_id

    state.registry.select(saved)
    return (
        f"✅ Saved '{saved.name}'",
        gr.update(choices=_endpoint_choices(), value=saved.id),
        saved.id,
    )


async def duplicate_endpoint(endpoint_id: str) -> tuple:
    """Duplicate the stored endpoint. Returns (status, dropdown update)."""
    endpoint = state.registry.get(endpoint_id)
    if endpoint is None:
        return "❌ Save the endpoint before duplicating it", gr.update()
    copy = await state.registry.duplicate(endpoint)
    return f"✅ Created '{copy.name}'", gr.update(choices=_endpoint_choices())


async def delete_endpoint(endpoint_id: str) -> tuple:
    """
    Delete the stored endpoint.
    Returns (status, dropdown update, *editor values, *reasoning updates).
    """
    endpoint = state.registry.get(endpoint_id)
    if endpoint is None:
        return ("❌ No saved endpoint selected", gr.update(), *_editor_values(None),
                *reasoning_updates(""))

    await state.registry.delete(endpoint.id)
    selected = state.registry.selected
    return (
        f"🗑️ Deleted '{endpoint.name}'",
        gr.update(choices=_endpoint_choices(), value=selected.id if selected else None),
        *_editor_values(selected),
        *reasoning_updates(selected.model if selected else ""),
    )


async def fetch_models(name, url, api_key, headers_text) -> tuple:
    """Query the editor's endpoint for models. Returns (status, model dropdown update)."""
    draft = _draft_endpoint(None, name, url, api_key, headers_text, "")
    if not draft.url:
        return "❌ Enter a URL first", gr.update()
    try:
        models = await state.session.transport.get_available_models(draft)
    except ModelCurlError as e:
        return f"❌ {e}", gr.update()

    if not models:
        return "⚠️ Endpoint returned no models", gr.update(choices=[])
    return f"✅ Found {len(models)} model(s)", gr.update(choices=models)


async def check_endpoint_connection(name, url, api_key, headers_text) -> str:
    """Check the editor's endpoint. Returns a status message."""
    draft = _draft_endpoint(None, name, url, api_key, headers_text, "")
    if not draft.url:
        return "❌ Enter a URL first"
    result = await state.session.transport.check_connection(draft)
    return f"{'✅' if result.success else '❌'} {result.message}"


# ─────────────────────────────────────────────────────────────────────
# GENERATION
# ─────────────────────────────────────────────────────────────────────

def build_reasoning_config(
    model: str,
    enable_thinking: bool,
    effort: Optional[str],
    max_completion_tokens: Optional[float],
    budget_tokens: Optional[float],
) -> Optional[ReasoningConfig]:
    """Reasoning config from UI controls, or None for non-reasoning models."""
    if detect_provider(model) is ReasoningProvider.NONE:
        return None
    return ReasoningConfig(
        enable_thinking=bool(enable_thinking),
        reasoning_effort=ReasoningEffort(effort) if effort else None,
        max_completion_tokens=int(max_completion_tokens) if max_completion_tokens else None,
        thinking_budget_tokens=int(budget_tokens) if budget_tokens else None,
    )


async def send_prompt(
    prompt: str,
    system_prompt: str,
    temperature: float,
    max_tokens: int,
    stream: bool,
    enable_thinking: bool,
    effort: Optional[str],
    max_completion_tokens: Optional[float],
    budget_tokens: Optional[float],
):
    """
    Send the prompt to the selected endpoint.

    Yields (response, metrics, reasoning, error) after every token and once
    more when the request settles.
    """
    session = state.session
    endpoint = state.registry.selected

    if endpoint is None:
        yield ("", "", "", format_error("Please select an endpoint first"))
        return
    if not prompt or not prompt.strip():
        yield ("", "", "", format_error("Enter a prompt"))
        return
    if session.is_loading:
        yield _render_session()[:3] + (format_error("A request is already in progress"),)
        return

    request = GenerationRequest(
        model=endpoint.model,
        messages=build_messages(prompt, system_prompt),
        temperature=temperature,
        max_tokens=int(max_tokens),
        stream=bool(stream),
        reasoning_config=build_reasoning_config(
            endpoint.model, enable_thinking, effort, max_completion_tokens, budget_tokens
        ),
    )
    state.remember_exchange(endpoint, request)

    updates: asyncio.Queue = asyncio.Queue()
    task = asyncio.create_task(
        session.send_request(endpoint, request, on_token=updates.put_nowait)
    )

    while not task.done():
        next_token = asyncio.ensure_future(updates.get())
        done, _ = await asyncio.wait({next_token, task}, return_when=asyncio.FIRST_COMPLETED)
        if next_token in done:
            yield _render_session()
        else:
            next_token.cancel()

    await task
    yield _render_session()


def clear_response() -> tuple:
    state.session.clear_response()
    return _render_session()


def dismiss_error() -> str:
    state.session.dismiss_error()
    return ""


def refresh_error() -> str:
    """Timer tick: pick up auto-dismissed errors."""
    return format_error(state.session.error)


# ─────────────────────────────────────────────────────────────────────
# EXPORT & HISTORY
# ─────────────────────────────────────────────────────────────────────

def export_markdown() -> str:
    if state.last_request is None:
        return "Nothing to export yet."
    session = state.session
    return generate_markdown_report(
        state.last_endpoint, state.last_request, session.response,
        session.metrics, session.last_response,
    )


def export_json() -> str:
    if state.last_request is None:
        return "Nothing to export yet."
    session = state.session
    return generate_json_report(
        state.last_endpoint, state.last_request, session.response,
        session.metrics, session.last_response,
    )


def load_history() -> list[list]:
    """Rows for the history table, newest first."""
    if state.history is None:
        return []
    rows = []
    for item in reversed(state.history.get_request_history()):
        rows.append([
            datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S"),
            item.endpoint_name,
            item.model,
            item.prompt[:80],
            round(item.metrics.ttft_ms),
            round(item.metrics.total_latency_ms),
            item.metrics.total_tokens,
        ])
    return rows


def clear_history() -> list[list]:
    if state.history is not None:
        state.history.clear_history()
    return []
