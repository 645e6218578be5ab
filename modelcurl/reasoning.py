"""
Reasoning parameter mapping.

Translates a normalized ReasoningConfig into the subset of fields a given
provider understands. Fields a provider does not understand are omitted
from the result entirely.
"""

from typing import Any, Optional

from modelcurl.config import ReasoningConfig, ReasoningEffort
from modelcurl.provider import ReasoningProvider


# Policy defaults per provider. Only the keys listed for a provider are ever
# emitted for it.
PROVIDER_DEFAULTS: dict[ReasoningProvider, dict[str, Any]] = {
    ReasoningProvider.OPENAI: {
        "reasoning_effort": ReasoningEffort.MEDIUM,
        "max_completion_tokens": 2048,
    },
    ReasoningProvider.DEEPSEEK: {
        "enable_thinking": False,
    },
    ReasoningProvider.QWEN: {
        "enable_thinking": False,
        "thinking_budget_tokens": 8000,
    },
    ReasoningProvider.CLAUDE: {
        "enable_thinking": False,
        "thinking_budget_tokens": 20000,
    },
    ReasoningProvider.NONE: {},
}

# Providers whose thinking budget is only meaningful while thinking is on
_BUDGET_REQUIRES_THINKING = {ReasoningProvider.QWEN, ReasoningProvider.CLAUDE}


def resolve_reasoning_config(
    provider: ReasoningProvider,
    config: Optional[ReasoningConfig],
) -> ReasoningConfig:
    """Return a copy of config with unset fields filled from provider defaults."""
    config = config or ReasoningConfig()
    defaults = PROVIDER_DEFAULTS[provider]
    updates = {
        field: value
        for field, value in defaults.items()
        if getattr(config, field) is None
    }
    return config.model_copy(update=updates)


def map_reasoning_params(
    provider: ReasoningProvider,
    config: Optional[ReasoningConfig],
) -> dict[str, Any]:
    """
    Map a normalized reasoning config onto a provider's field subset.

    Returns:
        Dict keyed by ReasoningConfig field names. Empty for NONE.

    Example:
        >>> map_reasoning_params(ReasoningProvider.QWEN, ReasoningConfig())
        {'enable_thinking': False}
    """
    provider = ReasoningProvider(provider)
    resolved = resolve_reasoning_config(provider, config)

    params: dict[str, Any] = {}
    for field in PROVIDER_DEFAULTS[provider]:
        params[field] = getattr(resolved, field)

    if provider in _BUDGET_REQUIRES_THINKING and not params["enable_thinking"]:
        params.pop("thinking_budget_tokens", None)

    if "reasoning_effort" in params:
        params["reasoning_effort"] = ReasoningEffort(params["reasoning_effort"]).value

    return params
