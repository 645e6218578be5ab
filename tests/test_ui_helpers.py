"""Tests for modelcurl.ui_helpers module."""

from modelcurl.config import (
    GenerationResponse,
    PerformanceMetrics,
    ThinkingBlock,
    UsageMetrics,
)
from modelcurl.provider import ReasoningProvider
from modelcurl.ui_helpers import (
    format_error,
    format_metrics_markdown,
    format_reasoning_markdown,
    reasoning_controls_visibility,
)


class TestFormatMetricsMarkdown:

    def test_nothing_yet(self):
        assert format_metrics_markdown(None) == ""

    def test_ttft_only_while_streaming(self):
        assert "| 42 ms |" in format_metrics_markdown(None, ttft_ms=42)

    def test_full_table(self):
        text = format_metrics_markdown(PerformanceMetrics(
            ttft_ms=60, avg_tpot_ms=60, total_latency_ms=130,
            total_tokens=3, tokens_per_second=23.0769,
        ))
        assert "| 60 ms | 60.0 ms | 130 ms | 3 | 23.08 |" in text

    def test_undefined_fields_render_as_dash(self):
        text = format_metrics_markdown(
            PerformanceMetrics(ttft_ms=300, total_latency_ms=300, total_tokens=7)
        )
        assert "| 300 ms | - | 300 ms | 7 | - |" in text


class TestFormatReasoningMarkdown:

    def test_plain_response(self):
        assert format_reasoning_markdown(GenerationResponse(content="x")) == ""
        assert format_reasoning_markdown(None) == ""

    def test_openai_shows_token_count_only(self):
        result = GenerationResponse(
            content="x",
            usage=UsageMetrics(
                prompt_tokens=1, completion_tokens=2, total_tokens=3, reasoning_tokens=64
            ),
            reasoning_provider=ReasoningProvider.OPENAI,
        )
        text = format_reasoning_markdown(result)
        assert "Reasoning (OpenAI)" in text
        assert "Reasoning tokens used: 64" in text

    def test_deepseek_reasoning_content(self):
        result = GenerationResponse(
            content="x", reasoning_content="thinking...",
            reasoning_provider=ReasoningProvider.DEEPSEEK,
        )
        assert format_reasoning_markdown(result).endswith("thinking...")

    def test_claude_blocks(self):
        result = GenerationResponse(
            content="x",
            thinking_blocks=[ThinkingBlock(content="alpha"), ThinkingBlock(content="beta", summary="S")],
            reasoning_provider=ReasoningProvider.CLAUDE,
        )
        text = format_reasoning_markdown(result)
        assert "*Block 1*" in text
        assert "*Block 2* - S" in text
        assert text.index("alpha") < text.index("beta")


class TestFormatError:

    def test_error(self):
        assert format_error("boom") == "❌ boom"

    def test_no_error(self):
        assert format_error(None) == ""


class TestReasoningControlsVisibility:

    def test_none_hides_group(self):
        visible = reasoning_controls_visibility(ReasoningProvider.NONE)
        assert not any(visible.values())

    def test_openai(self):
        visible = reasoning_controls_visibility(ReasoningProvider.OPENAI)
        assert visible["effort"] and visible["max_completion"]
        assert not visible["thinking"] and not visible["budget"]

    def test_deepseek_has_no_budget(self):
        visible = reasoning_controls_visibility(ReasoningProvider.DEEPSEEK)
        assert visible["thinking"] and not visible["budget"]

    def test_qwen_and_claude_have_budget(self):
        for provider in (ReasoningProvider.QWEN, ReasoningProvider.CLAUDE):
            visible = reasoning_controls_visibility(provider)
            assert visible["thinking"] and visible["budget"]
