"""Contextual logging and timing metrics for pipeline runs."""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .logging_config import setup_logger


@dataclass(frozen=True)
class LogContext:
    """Correlation id, stage and metadata attached to every log line of a run.

    Contexts are immutable; ``with_*`` returns a derived copy that keeps the
    correlation id, so every line of one pipeline run can be grepped together.
    """

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        return LogContext(self.correlation_id, operation, self.component, dict(self.metadata))

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return LogContext(
            self.correlation_id,
            self.operation,
            self.component,
            {**self.metadata, **kwargs},
        )


def render_message(
    message: str, context: Optional[LogContext] = None, **kwargs: Any
) -> str:
    """Render ``[operation] [correlation_id] message (k=v, ...)``."""
    extra = dict(kwargs)
    if context is not None:
        extra = {**context.metadata, **kwargs}
        message = f"[{context.correlation_id}] {message}"
        if context.operation:
            message = f"[{context.operation}] {message}"

    if extra:
        message += " (" + ", ".join(f"{k}={v}" for k, v in extra.items()) + ")"
    return message


class StructuredLogger:
    """Standard library logger that renders a LogContext into each message."""

    def __init__(self, name: str = "image-variants", level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.log(logging.DEBUG, render_message(message, context, **kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.log(logging.INFO, render_message(message, context, **kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.log(logging.WARNING, render_message(message, context, **kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.log(logging.ERROR, render_message(message, context, **kwargs))


@dataclass
class PerformanceMetrics:
    """Timing of one transform-and-upload branch (or any other operation)."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000


class MetricsCollector:
    """Thread-safe sink for PerformanceMetrics.

    Branches finish on the event loop while transforms run on worker
    threads, so every access goes through one lock.
    """

    def __init__(self) -> None:
        self._metrics: List[PerformanceMetrics] = []
        self._lock = threading.Lock()

    def record_metric(self, metric: PerformanceMetrics) -> None:
        with self._lock:
            self._metrics.append(metric)

    @contextmanager
    def track(self, operation: str, **metadata: Any) -> Iterator[Dict[str, Any]]:
        """Time the enclosed block and record it, failed if it raises.

        Yields the metadata dict so the block can add to it. The exception
        is re-raised after recording.
        """
        start_time = time.time()
        try:
            yield metadata
        except Exception as exc:
            self.record_metric(
                PerformanceMetrics(operation, start_time, time.time(), False, str(exc), metadata)
            )
            raise
        self.record_metric(PerformanceMetrics(operation, start_time, time.time(), True, None, metadata))

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        with self._lock:
            if operation:
                return [m for m in self._metrics if m.operation == operation]
            return list(self._metrics)

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Counts, success rate and duration statistics in seconds."""
        metrics = self.get_metrics(operation)
        if not metrics:
            return {}

        durations = [m.duration for m in metrics]
        succeeded = sum(1 for m in metrics if m.success)
        return {
            "total_operations": len(metrics),
            "successful_operations": succeeded,
            "failed_operations": len(metrics) - succeeded,
            "success_rate": succeeded / len(metrics),
            "avg_duration": sum(durations) / len(durations),
            "min_duration": min(durations),
            "max_duration": max(durations),
            "total_duration": sum(durations),
        }

    def clear_metrics(self) -> None:
        with self._lock:
            self._metrics.clear()
