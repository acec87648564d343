"""Metrics hooks injected into the linting pipeline.

Metric names live in ``observability.names``. Durations are milliseconds.
"""

import logging
from collections import Counter
from typing import Protocol

logger = logging.getLogger(__name__)


class MetricsHook(Protocol):
    def record_latency(
        self,
        name: str,
        value_ms: float,
        labels: dict[str, str] | None = None,
    ) -> None: ...

    def increment(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None: ...


class NoOpMetricsHook:
    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        pass


def _format_labels(labels: dict[str, str] | None) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f"{k}={v}" for k, v in sorted(labels.items())) + "}"


class LoggingMetricsHook:
    """Logs every metric at DEBUG and keeps running totals.

    Counters are summed per name and label set; latencies are summed per
    name. ``summary()`` returns both for an end-of-run log line.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.latencies_ms: Counter[str] = Counter()

    def record_latency(
        self, name: str, value_ms: float, labels: dict[str, str] | None = None
    ) -> None:
        logger.debug("metric %s%s = %.2fms", name, _format_labels(labels), value_ms)
        self.latencies_ms[name] += value_ms

    def increment(
        self, name: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        key = name + _format_labels(labels)
        logger.debug("metric %s += %d", key, value)
        self.counters[key] += value

    def summary(self) -> str:
        parts = [f"{key}={count}" for key, count in sorted(self.counters.items())]
        parts.extend(
            f"{name}={total:.2f}ms"
            for name, total in sorted(self.latencies_ms.items())
        )
        return " ".join(parts)
