"""
Per-request latency and throughput telemetry.

A StreamTelemetry value is created when a request is dispatched, fed one
record_token() call per arrival event, and discarded once finalize() has
produced PerformanceMetrics. Nothing here is shared between requests.

All times are milliseconds on a monotonic clock.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from modelcurl.config import PerformanceMetrics, UsageMetrics


Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: milliseconds from time.perf_counter()."""
    return time.perf_counter() * 1000


@dataclass
class StreamTelemetry:
    """Timing state for one streaming request."""
    start_ms: float
    first_token_ms: Optional[float] = None
    token_timestamps: list[float] = field(default_factory=list)
    text: str = ""

    @classmethod
    def dispatch(cls, clock: Clock = monotonic_ms) -> "StreamTelemetry":
        """Start timing a request now."""
        return cls(start_ms=clock())

    @property
    def token_count(self) -> int:
        return len(self.token_timestamps)

    @property
    def ttft_ms(self) -> Optional[float]:
        """Time to first non-blank token, or None if none has arrived."""
        if self.first_token_ms is None:
            return None
        return self.first_token_ms - self.start_ms

    def record_token(self, token: str, at_ms: float) -> None:
        """
        Record one arrival event.

        Whitespace-only tokens count toward token totals and throughput but
        do not mark the first token. Text is appended verbatim.
        """
        self.token_timestamps.append(at_ms)
        if self.first_token_ms is None and token.strip():
            self.first_token_ms = at_ms
        self.text += token

    def finalize(self, end_ms: float) -> PerformanceMetrics:
        """Compute metrics for a completed stream."""
        total_latency = end_ms - self.start_ms
        ttft = self.ttft_ms if self.ttft_ms is not None else 0.0

        gaps = [
            later - earlier
            for earlier, later in zip(self.token_timestamps, self.token_timestamps[1:])
        ]
        avg_tpot = sum(gaps) / len(gaps) if gaps else None

        tokens_per_second = None
        if total_latency > 0:
            tokens_per_second = self.token_count / total_latency * 1000

        return PerformanceMetrics(
            ttft_ms=ttft,
            avg_tpot_ms=avg_tpot,
            total_latency_ms=total_latency,
            total_tokens=self.token_count,
            tokens_per_second=tokens_per_second,
        )


def unary_metrics(
    start_ms: float,
    end_ms: float,
    usage: Optional[UsageMetrics] = None,
) -> PerformanceMetrics:
    """
    Metrics for a non-streaming request.

    The whole response arrives at once, so TTFT equals total latency and
    per-token timing is undefined. Token count comes from provider usage.
    """
    elapsed = end_ms - start_ms
    return PerformanceMetrics(
        ttft_ms=elapsed,
        total_latency_ms=elapsed,
        total_tokens=usage.completion_tokens if usage else 0,
    )
