"""Metrics hook protocol and no-op default implementation.

bucketify emits counters, timings, and gauges around API requests and
client operations.  By default a :class:`NoopMetricsHook` is used so
there is zero overhead.  Users can supply their own implementation that
satisfies the :class:`MetricsHook` protocol to route metrics to
Prometheus, StatsD, or any other backend.

Emitted metric names:

* ``bucketify.requests_total``              -- counter
* ``bucketify.request_duration_ms``         -- timing
* ``bucketify.operations_total``            -- counter (tags ``op``, ``status``)
* ``bucketify.compression_fallback_total``  -- counter
* ``bucketify.compressed_bytes``            -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


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
    """Default metrics implementation that discards all data points.

    Used when the caller does not supply a backend, so that call-sites
    never need ``if self._metrics is not None`` guards.
    """

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
