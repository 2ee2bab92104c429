"""Observability utilities for structured logging and per-variant timings."""

import time
import uuid
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum

from .logging_config import setup_logger


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class LogContext:
    """Context information for structured logging."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **kwargs) -> "LogContext":
        """Create new context with additional metadata."""
        new_metadata = self.metadata.copy()
        new_metadata.update(kwargs)
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata=new_metadata,
        )


class StructuredLogger:
    """Structured logger with context support."""

    def __init__(
        self,
        name: str = "media-derivatives",
        level: Optional[str] = None,
        format_type: Optional[str] = None,
    ):
        self._logger = setup_logger(name, level=level, format_type=format_type)

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs,
    ):
        if context:
            formatted_message = f"[{context.correlation_id}] {message}"
            if context.operation:
                formatted_message = f"[{context.operation}] {formatted_message}"

            if context.metadata or kwargs:
                metadata_str = ", ".join(
                    f"{k}={v}" for k, v in {**context.metadata, **kwargs}.items()
                )
                formatted_message = f"{formatted_message} ({metadata_str})"
        elif kwargs:
            metadata_str = ", ".join(f"{k}={v}" for k, v in kwargs.items())
            formatted_message = f"{message} ({metadata_str})"
        else:
            formatted_message = message

        getattr(self._logger, level.value.lower())(formatted_message)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log error message."""
        self._log(LogLevel.ERROR, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Performance metrics for one variant."""

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
    """Collector for performance metrics."""

    def __init__(self):
        self._metrics: list[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics):
        self._metrics.append(metric)

    def record(
        self,
        operation: str,
        start_time: float,
        success: bool,
        error_message: Optional[str] = None,
        **metadata,
    ) -> PerformanceMetrics:
        """Record an operation that started at ``start_time`` and ends now."""
        metric = PerformanceMetrics(
            operation=operation,
            start_time=start_time,
            end_time=time.time(),
            success=success,
            error_message=error_message,
            metadata=metadata,
        )
        self.record_metric(metric)
        return metric

    def get_metrics(self, operation: Optional[str] = None) -> list[PerformanceMetrics]:
        """Get recorded metrics, optionally filtered by operation."""
        if operation:
            return [m for m in self._metrics if m.operation == operation]
        return self._metrics.copy()

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Get summary statistics for metrics."""
        metrics = self.get_metrics(operation)

        if not metrics:
            return {}

        durations = [m.duration for m in metrics]
        successful = [m for m in metrics if m.success]

        return {
            "total_operations": len(metrics),
            "successful_operations": len(successful),
            "failed_operations": len(metrics) - len(successful),
            "avg_duration": sum(durations) / len(durations),
            "max_duration": max(durations),
            "total_duration": sum(durations),
        }

    def clear_metrics(self):
        self._metrics.clear()
