"""
Report generation in Markdown and JSON formats.
"""

import json
from datetime import datetime
from typing import Optional

from modelcurl.config import (
    Endpoint,
    GenerationRequest,
    GenerationResponse,
    PerformanceMetrics,
    REPORT_DIVIDER,
)
from modelcurl.provider import detect_provider, get_provider_name, ReasoningProvider


def format_metrics_lines(metrics: Optional[PerformanceMetrics]) -> list[str]:
    """Render metrics as markdown bullet lines."""
    if metrics is None:
        return ["_No metrics recorded._"]

    lines = [
        f"- **TTFT:** {metrics.ttft_ms:.0f} ms",
        f"- **Total latency:** {metrics.total_latency_ms:.0f} ms",
        f"- **Tokens:** {metrics.total_tokens}",
    ]
    if metrics.avg_tpot_ms is not None:
        lines.append(f"- **Avg TPOT:** {metrics.avg_tpot_ms:.1f} ms")
    if metrics.tokens_per_second is not None:
        lines.append(f"- **Throughput:** {metrics.tokens_per_second:.2f} tokens/s")
    return lines


def generate_markdown_report(
    endpoint: Endpoint,
    request: GenerationRequest,
    response_text: str,
    metrics: Optional[PerformanceMetrics],
    result: Optional[GenerationResponse] = None,
) -> str:
    """
    Generate a Markdown report for one exchange.
    """
    lines = []
    provider = detect_provider(request.model)

    # Header
    lines.append("# ModelCurl Report")
    lines.append("")
    lines.append(f"**Generated:** {datetime.now().isoformat()}")
    lines.append(f"**Endpoint:** {endpoint.name} ({endpoint.url})")
    lines.append(f"**Model:** {request.model}")
    if provider is not ReasoningProvider.NONE:
        lines.append(f"**Reasoning provider:** {get_provider_name(provider)}")
    lines.append(f"**Temperature:** {request.temperature}")
    lines.append(f"**Max Tokens:** {request.max_tokens}")
    lines.append(f"**Stream:** {request.stream}")
    lines.append("")

    for msg in request.messages:
        lines.append(f"## {msg.role.capitalize()}")
        lines.append("")
        lines.append(msg.content)
        lines.append("")

    lines.append(REPORT_DIVIDER.strip())
    lines.append("")

    if result is not None and result.reasoning_content:
        lines.append("## Reasoning")
        lines.append("")
        lines.append(result.reasoning_content)
        lines.append("")

    if result is not None and result.thinking_blocks:
        lines.append("## Thinking")
        lines.append("")
        for i, block in enumerate(result.thinking_blocks, 1):
            title = f"### Block {i}"
            if block.summary:
                title += f": {block.summary}"
            lines.append(title)
            lines.append("")
            lines.append(block.content)
            lines.append("")

    lines.append("## Response")
    lines.append("")
    lines.append(response_text)
    lines.append("")

    lines.append("## Metrics")
    lines.append("")
    lines.extend(format_metrics_lines(metrics))

    return "\n".join(lines)


def generate_json_report(
    endpoint: Endpoint,
    request: GenerationRequest,
    response_text: str,
    metrics: Optional[PerformanceMetrics],
    result: Optional[GenerationResponse] = None,
) -> str:
    """
    Generate a JSON report for one exchange. The API key is never included.
    """
    report = {
        "generated_at": datetime.now().isoformat(),
        "endpoint": {
            "name": endpoint.name,
            "url": endpoint.url,
            "model": endpoint.model,
        },
        "request": request.model_dump(mode="json"),
        "response": response_text,
        "metrics": metrics.model_dump(mode="json") if metrics else None,
    }

    if result is not None:
        report["finish_reason"] = result.finish_reason
        report["usage"] = result.usage.model_dump(mode="json") if result.usage else None
        report["reasoning_content"] = result.reasoning_content
        report["thinking_blocks"] = [b.model_dump(mode="json") for b in result.thinking_blocks]

    return json.dumps(report, indent=2)


def save_report(content: str, filepath: str) -> None:
    """Save report content to file."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(content)
