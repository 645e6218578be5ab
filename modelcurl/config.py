"""
Configuration constants and Pydantic models for modelcurl.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from modelcurl.provider import ReasoningProvider


# ─────────────────────────────────────────────────────────────────────
# DEFAULTS - User-configurable via Gradio UI
# ─────────────────────────────────────────────────────────────────────

DEFAULT_TEMPERATURE: float = 0.0
DEFAULT_MAX_TOKENS: int = 2048
DEFAULT_TIMEOUT_SECONDS: int = 300  # 5 minutes
DEFAULT_STREAM: bool = True
DEFAULT_SYSTEM_PROMPT: str = ""


# ─────────────────────────────────────────────────────────────────────
# INTERNAL CONSTANTS - Not exposed to UI
# ─────────────────────────────────────────────────────────────────────

ERROR_DISMISS_SECONDS: float = 5.0
ENDPOINTS_FILENAME: str = "endpoints.json"
HISTORY_FILENAME: str = "history.json"
COPY_SUFFIX: str = " (copy)"
REPORT_DIVIDER: str = "\n\n" + "=" * 80 + "\n\n"


# ─────────────────────────────────────────────────────────────────────
# ENVIRONMENT LOADING
# ─────────────────────────────────────────────────────────────────────

def get_config_dir() -> Path:
    """
    Get the directory holding endpoints.json and history.json.

    Set MODELCURL_CONFIG_DIR in .env to override (default: ~/.config/modelcurl).
    """
    value = os.environ.get("MODELCURL_CONFIG_DIR", "").strip()
    if value:
        return Path(value).expanduser()
    return Path.home() / ".config" / "modelcurl"


def get_timeout_seconds() -> int:
    """
    Get request timeout from environment or default.

    Set MODELCURL_TIMEOUT_SECONDS in .env (default: 300).
    """
    try:
        return int(os.environ.get("MODELCURL_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def get_gradio_port() -> int:
    """
    Get Gradio server port from environment or default.

    Returns port from GRADIO_PORT env var, or 7860 as default.
    """
    port_str = os.environ.get("GRADIO_PORT", "7860")
    try:
        return int(port_str)
    except ValueError:
        return 7860


# ─────────────────────────────────────────────────────────────────────
# DATA MODELS
# ─────────────────────────────────────────────────────────────────────

class Endpoint(BaseModel):
    """A saved API endpoint profile.

    Field aliases match the endpoints.json layout written by earlier
    releases (``apiKey``), and either name is accepted on input.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None  # Assigned by the registry on first save
    name: str = ""
    url: str = ""
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    headers: list[tuple[str, str]] = []
    model: str = ""

    def to_storage(self) -> dict:
        """Serialize for endpoints.json."""
        return self.model_dump(mode="json", by_alias=True)


class Message(BaseModel):
    """A single message in a conversation."""
    role: Literal["system", "user", "assistant"]
    content: str


class ReasoningEffort(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReasoningConfig(BaseModel):
    """Normalized reasoning controls.

    Every field is optional. Unset fields are filled with the defaults of
    whichever provider the request is routed to (see reasoning.py), so the
    same config can be reused across endpoints.
    """
    enable_thinking: Optional[bool] = None
    reasoning_effort: Optional[ReasoningEffort] = None
    max_completion_tokens: Optional[int] = Field(default=None, ge=1)
    thinking_budget_tokens: Optional[int] = Field(default=None, ge=1)


class GenerationRequest(BaseModel):
    """One chat-completion invocation."""
    model: str
    messages: list[Message]
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    stream: bool = DEFAULT_STREAM
    reasoning_config: Optional[ReasoningConfig] = None

    @property
    def prompt(self) -> str:
        """Text of the last user message (used for history and reports)."""
        for msg in reversed(self.messages):
            if msg.role == "user":
                return msg.content
        return ""


class UsageMetrics(BaseModel):
    """Token usage as reported by the provider."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    reasoning_tokens: Optional[int] = None


class ThinkingBlock(BaseModel):
    """One block of extended thinking, kept in arrival order."""
    content: str
    summary: Optional[str] = None


class GenerationResponse(BaseModel):
    """Parsed unary response."""
    content: str
    usage: Optional[UsageMetrics] = None
    finish_reason: str = "stop"
    reasoning_content: Optional[str] = None
    thinking_blocks: list[ThinkingBlock] = []
    reasoning_provider: Optional[ReasoningProvider] = None


class PerformanceMetrics(BaseModel):
    """Latency and throughput for one invocation."""
    ttft_ms: float
    avg_tpot_ms: Optional[float] = None
    total_latency_ms: float
    total_tokens: int
    tokens_per_second: Optional[float] = None


class RequestHistoryItem(BaseModel):
    """A completed request as recorded in history.json."""
    id: str
    timestamp: int  # epoch milliseconds
    endpoint_name: str
    model: str
    prompt: str
    response: str
    metrics: PerformanceMetrics
    stream: bool


class ConnectionTestResult(BaseModel):
    """Outcome of a lightweight endpoint check."""
    success: bool
    message: str
    latency_ms: Optional[float] = None
