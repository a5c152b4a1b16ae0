"""Metrics hook protocol and no-op default implementation.

blockify emits counters and timings at key points (conversions,
warnings, uploads, HTTP requests).  By default a :class:`NoopMetricsHook`
is used.  Any object satisfying :class:`MetricsHook` can be supplied via
``BlockifyConfig(metrics=...)`` to route data points to StatsD,
Prometheus, Datadog, etc.

Emitted metric names:

* ``blockify.blocks_converted_total``     -- counter, tag ``source``
* ``blockify.conversion_warnings_total``  -- counter, tag ``source``
* ``blockify.upload_success_total``       -- counter
* ``blockify.upload_failure_total``       -- counter, tag ``reason``
* ``blockify.upload_duration_ms``         -- timing
* ``blockify.requests_total``             -- counter, tag ``status``
* ``blockify.retries_total``              -- counter, tag ``reason``
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(hook: Any | None) -> MetricsHook:
    """Return *hook*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return hook if hook is not None else NoopMetricsHook()
