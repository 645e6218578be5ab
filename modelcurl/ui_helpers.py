"""
UI helper constants and functions for modelcurl.

Separates CSS and display formatting from ui.py for cleaner organization.
"""

from typing import Optional

from modelcurl.config import GenerationResponse, PerformanceMetrics
from modelcurl.provider import ReasoningProvider, get_provider_name

# ─────────────────────────────────────────────────────────────────────
# CSS
# ─────────────────────────────────────────────────────────────────────

CUSTOM_CSS = """
/* Streamed response - scrollable content */
#response-output {
    min-height: 300px;
    max-height: 600px;
    overflow-y: auto;
}

/* Metrics panel */
#metrics-panel table {
    font-family: monospace;
    font-size: 14px;
}

/* Error line */
#error-line {
    color: #b91c1c;
}

/* Compact config panels */
.config-row {
    gap: 1rem;
}
"""


# ─────────────────────────────────────────────────────────────────────
# FORMATTING
# ─────────────────────────────────────────────────────────────────────

def _fmt_ms(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.0f} ms"


def format_metrics_markdown(
    metrics: Optional[PerformanceMetrics],
    ttft_ms: Optional[float] = None,
) -> str:
    """
    Render the metrics panel.

    While a stream is running only TTFT is known; pass it as ttft_ms.
    """
    if metrics is None:
        if ttft_ms is None:
            return ""
        return f"| TTFT |\n|---|\n| {_fmt_ms(ttft_ms)} |"

    tpot = "-" if metrics.avg_tpot_ms is None else f"{metrics.avg_tpot_ms:.1f} ms"
    tps = "-" if metrics.tokens_per_second is None else f"{metrics.tokens_per_second:.2f}"
    return (
        "| TTFT | Avg TPOT | Total latency | Tokens | Tokens/s |\n"
        "|---|---|---|---|---|\n"
        f"| {_fmt_ms(metrics.ttft_ms)} | {tpot} | {_fmt_ms(metrics.total_latency_ms)} "
        f"| {metrics.total_tokens} | {tps} |"
    )


def format_reasoning_markdown(result: Optional[GenerationResponse]) -> str:
    """Render reasoning output of a unary response, if any."""
    if result is None or result.reasoning_provider is None:
        return ""

    provider = ReasoningProvider(result.reasoning_provider)
    lines = [f"**Reasoning ({get_provider_name(provider)})**", ""]

    if provider is ReasoningProvider.OPENAI:
        tokens = result.usage.reasoning_tokens if result.usage else None
        if tokens is None:
            return ""
        lines.append(f"Reasoning tokens used: {tokens}")
    elif result.thinking_blocks:
        for i, block in enumerate(result.thinking_blocks, 1):
            header = f"*Block {i}*"
            if block.summary:
                header += f" - {block.summary}"
            lines.extend([header, "", block.content, ""])
    elif result.reasoning_content:
        lines.append(result.reasoning_content)
    else:
        return ""

    return "\n".join(lines).rstrip()


def format_error(error: Optional[str]) -> str:
    """Render the error line."""
    return f"❌ {error}" if error else ""


def reasoning_controls_visibility(provider: ReasoningProvider) -> dict[str, bool]:
    """
    Which reasoning controls apply to a provider.

    Keys: group, effort, max_completion, thinking, budget
    """
    provider = ReasoningProvider(provider)
    return {
        "group": provider is not ReasoningProvider.NONE,
        "effort": provider is ReasoningProvider.OPENAI,
        "max_completion": provider is ReasoningProvider.OPENAI,
        "thinking": provider in (
            ReasoningProvider.DEEPSEEK, ReasoningProvider.QWEN, ReasoningProvider.CLAUDE
        ),
        "budget": provider in (ReasoningProvider.QWEN, ReasoningProvider.CLAUDE),
    }
