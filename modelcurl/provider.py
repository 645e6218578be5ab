"""
Reasoning provider detection from model names.

Provider naming is inconsistent and keeps evolving, so detection is an
ordered list of pattern tests rather than a lookup table. First match wins:

    1. openai    o1*, o3*, or anything containing gpt-5 / gpt_5
    2. deepseek  anything containing "deepseek"
    3. qwen      the whole name is qwen/qwq plus known suffix segments
    4. claude    claude-3.7, claude-4, claude-opus-4.5, claude-sonnet-4 prefixes

Anything else (including the empty string) is ReasoningProvider.NONE.
"""

import re
from enum import Enum


class ReasoningProvider(str, Enum):
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    QWEN = "qwen"
    CLAUDE = "claude"
    NONE = "none"


PROVIDER_NAMES: dict[ReasoningProvider, str] = {
    ReasoningProvider.OPENAI: "OpenAI",
    ReasoningProvider.DEEPSEEK: "DeepSeek",
    ReasoningProvider.QWEN: "Qwen",
    ReasoningProvider.CLAUDE: "Claude",
    ReasoningProvider.NONE: "None",
}

_OPENAI_PREFIX = re.compile(r"^o[13]")
_GPT5 = re.compile(r"gpt[-_]5")
_DEEPSEEK = re.compile(r"deepseek[-_]?[rv]?[13]?(\.?\d+)?(-?reason(er)?)?")
# Anchored at both ends: "my-qwen-finetune" must not match.
# "." is only ever a separator ("2.5" reads as 2 . 5), so each name has one parse.
_QWEN_SEGMENT = r"(plus|max|turbo|coder|\d+b?)"
_QWEN = re.compile(
    rf"^(qwen|qwq)([-_.]?{_QWEN_SEGMENT}([-_.]{_QWEN_SEGMENT})*)?$"
)
_CLAUDE = re.compile(r"^claude[-_]?(3\.7|4|opus[-_]4\.5|sonnet[-_]4)")


def _is_openai_model(model: str) -> bool:
    return bool(_OPENAI_PREFIX.search(model) or _GPT5.search(model))


def _is_deepseek_model(model: str) -> bool:
    return bool(_DEEPSEEK.search(model))


def _is_qwen_model(model: str) -> bool:
    return bool(_QWEN.match(model))


def _is_claude_model(model: str) -> bool:
    return bool(_CLAUDE.match(model))


_DETECTION_ORDER = (
    (ReasoningProvider.OPENAI, _is_openai_model),
    (ReasoningProvider.DEEPSEEK, _is_deepseek_model),
    (ReasoningProvider.QWEN, _is_qwen_model),
    (ReasoningProvider.CLAUDE, _is_claude_model),
)


def detect_provider(model_name: str) -> ReasoningProvider:
    """
    Classify a model name into its reasoning provider family.

    Case-insensitive. Returns ReasoningProvider.NONE for plain models.
    """
    normalized = (model_name or "").strip().lower()
    if not normalized:
        return ReasoningProvider.NONE

    for provider, matches in _DETECTION_ORDER:
        if matches(normalized):
            return provider
    return ReasoningProvider.NONE


def is_reasoning_model(model_name: str) -> bool:
    """Check if a model exposes reasoning controls."""
    return detect_provider(model_name) is not ReasoningProvider.NONE


def get_provider_name(provider: ReasoningProvider) -> str:
    """Human-readable provider name."""
    return PROVIDER_NAMES[ReasoningProvider(provider)]
