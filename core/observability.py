"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Structured logging with context
2. Step tracing for guided turns, replies and summaries
3. Performance metrics collection
"""
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("journal")


@dataclass
class StepTrace:
    """Represents a single traced step (a turn, an LLM reply, a summary)."""
    step_name: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    input_summary: str = ""
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self, success: bool = True, error: str = None):
        """Mark trace as complete."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000
        self.success = success
        self.error = error


@dataclass
class TurnMetrics:
    """Aggregated metrics for traced steps, guided turn kinds and LLM token use."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: float = 0
    step_latencies: Dict[str, list] = field(default_factory=dict)
    turn_kinds: Dict[str, int] = field(default_factory=dict)
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests

    @property
    def avg_latency_ms(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_latency_ms / self.total_requests

    def record(self, trace: StepTrace):
        """Record a trace into metrics."""
        self.total_requests += 1
        if trace.success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1

        if trace.duration_ms:
            self.total_latency_ms += trace.duration_ms
            self.step_latencies.setdefault(trace.step_name, []).append(trace.duration_ms)

        kind = trace.metadata.get("kind")
        if kind:
            self.turn_kinds[kind] = self.turn_kinds.get(kind, 0) + 1

        # usage comes from LLM-backed steps only
        usage = trace.metadata.get("usage") or {}
        self.prompt_tokens += usage.get("prompt_tokens", 0)
        self.completion_tokens += usage.get("completion_tokens", 0)

    def summary(self) -> Dict[str, Any]:
        """Return metrics summary."""
        step_avg = {}
        for step, latencies in self.step_latencies.items():
            if latencies:
                step_avg[step] = sum(latencies) / len(latencies)

        return {
            "total_requests": self.total_requests,
            "success_rate": f"{self.success_rate:.1%}",
            "avg_latency_ms": f"{self.avg_latency_ms:.0f}ms",
            "step_avg_latency": step_avg,
            "turn_kinds": dict(self.turn_kinds),
            "llm_tokens": {"prompt": self.prompt_tokens, "completion": self.completion_tokens},
        }

    def reset(self):
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.total_latency_ms = 0
        self.step_latencies = {}
        self.turn_kinds = {}
        self.prompt_tokens = 0
        self.completion_tokens = 0


# Global metrics instance
metrics = TurnMetrics()


class Tracer:
    """Context manager for tracing a step."""

    def __init__(self, step_name: str, input_data: Any = None):
        self.trace = StepTrace(step_name=step_name)
        if input_data:
            self.trace.input_summary = str(input_data)[:200]

    def __enter__(self):
        logger.debug(f"▶ {self.trace.step_name} started")
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.trace.complete(success=False, error=str(exc_val))
            logger.error(f"✖ {self.trace.step_name} failed: {exc_val}")
        else:
            self.trace.complete(success=True)
            logger.info(f"✔ {self.trace.step_name} completed in {self.trace.duration_ms:.0f}ms")

        metrics.record(self.trace)
        return False  # Don't suppress exceptions


def get_metrics_summary() -> Dict[str, Any]:
    """Get current metrics summary for dashboard/API."""
    return metrics.summary()
