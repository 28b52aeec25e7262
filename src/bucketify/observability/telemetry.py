"""Single emit point for the optional success/failure hooks.

Client code never touches ``config.on_success`` / ``config.on_error``
directly; it calls :meth:`Telemetry.success` and :meth:`Telemetry.failure`
which fan out to the configured hooks and the metrics backend.  Hooks
are fire-and-forget: an awaitable returned by a hook is scheduled on the
running event loop and never awaited, and an exception raised by a hook
is logged, not propagated into the storage operation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from bucketify.errors import StorageFailure

from .metrics import NoopMetricsHook


class Telemetry:
    """Dispatch success/failure signals to hooks and metrics.

    Parameters
    ----------
    on_success:
        Optional zero-argument hook.
    on_error:
        Optional hook receiving the classified failure.
    metrics:
        Optional metrics backend.
    logger:
        Logger used to report misbehaving hooks.
    """

    def __init__(
        self,
        on_success: Callable[[], Any] | None = None,
        on_error: Callable[[StorageFailure], Any] | None = None,
        metrics: Any | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._on_success = on_success
        self._on_error = on_error
        self._metrics = metrics if metrics is not None else NoopMetricsHook()
        self._log = logger or logging.getLogger("bucketify.telemetry")
        self._pending: set[asyncio.Future[Any]] = set()

    def success(self, op: str) -> None:
        """Signal that a step of *op* completed successfully."""
        self._metrics.increment(
            "bucketify.operations_total",
            tags={"op": op, "status": "success"},
        )
        if self._on_success is not None:
            self._fire(self._on_success, op)

    def failure(self, op: str, failure: StorageFailure) -> None:
        """Signal that *op* ended with *failure*."""
        self._metrics.increment(
            "bucketify.operations_total",
            tags={"op": op, "status": failure.kind.value},
        )
        if self._on_error is not None:
            self._fire(self._on_error, op, failure)

    def _fire(self, hook: Callable[..., Any], op: str, *args: Any) -> None:
        try:
            outcome = hook(*args)
        except Exception as exc:
            self._log.warning(
                "Telemetry hook raised",
                extra={"extra_fields": {"op": op, "hook": _hook_name(hook), "error": str(exc)}},
            )
            return

        if inspect.isawaitable(outcome):
            self._schedule(outcome, op, hook)

    def _schedule(self, awaitable: Any, op: str, hook: Callable[..., Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run it on (sync client): discard without awaiting.
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._log.warning(
                "Async telemetry hook called outside an event loop",
                extra={"extra_fields": {"op": op, "hook": _hook_name(hook)}},
            )
            return

        future = asyncio.ensure_future(awaitable, loop=loop)
        # Hold a reference until completion so the task is not collected.
        self._pending.add(future)
        future.add_done_callback(lambda f: self._settle(f, op, hook))

    def _settle(self, future: asyncio.Future[Any], op: str, hook: Callable[..., Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._log.warning(
                "Telemetry hook raised",
                extra={"extra_fields": {"op": op, "hook": _hook_name(hook), "error": str(exc)}},
            )


def _hook_name(hook: Callable[..., Any]) -> str:
    return getattr(hook, "__qualname__", repr(hook))
