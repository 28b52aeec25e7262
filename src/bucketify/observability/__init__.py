"""Observability: structured logging, metrics and telemetry hooks for bucketify."""

from __future__ import annotations

from .logger import StructuredFormatter, get_logger, log_failure
from .metrics import MetricsHook, NoopMetricsHook
from .telemetry import Telemetry

__all__ = [
    "MetricsHook",
    "NoopMetricsHook",
    "StructuredFormatter",
    "Telemetry",
    "get_logger",
    "log_failure",
]
