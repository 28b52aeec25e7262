"""Connectivity probes consulted before every mutating operation.

A probe answers one question: can the storage service be reached at
all?  Any HTTP response, whatever its status, means yes; only a failure
to get a response (DNS, refused connection, timeout) means offline.
"""

from __future__ import annotations

import httpx

from bucketify.config import BucketifyConfig
from bucketify.errors import NoInternetConnectionFailure
from bucketify.models import Result
from bucketify.observability import get_logger

log = get_logger("bucketify.transport")


def _offline(url: str, exc: httpx.TransportError) -> Result[None]:
    log.warning(
        "Connectivity probe failed",
        extra={"extra_fields": {"op": "check_internet_connection", "url": url, "error": str(exc)}},
    )
    return Result.error(
        NoInternetConnectionFailure(error=str(exc), context={"url": url}, cause=exc)
    )


class ConnectivityProbe:
    """Synchronous connectivity probe.

    Parameters
    ----------
    config:
        Supplies the probe URL, timeout and proxy.
    """

    def __init__(self, config: BucketifyConfig) -> None:
        self._url = config.resolved_connectivity_url
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.connectivity_timeout_seconds),
            proxy=config.http_proxy,
        )

    def check_internet_connection(self) -> Result[None]:
        """Return success if the service answered, else a
        :class:`NoInternetConnectionFailure`."""
        try:
            self._client.get(self._url)
        except httpx.TransportError as exc:
            return _offline(self._url, exc)
        return Result.success(None)

    def close(self) -> None:
        self._client.close()


class AsyncConnectivityProbe:
    """Asynchronous connectivity probe.

    Mirrors :class:`ConnectivityProbe`.
    """

    def __init__(self, config: BucketifyConfig) -> None:
        self._url = config.resolved_connectivity_url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.connectivity_timeout_seconds),
            proxy=config.http_proxy,
        )

    async def check_internet_connection(self) -> Result[None]:
        try:
            await self._client.get(self._url)
        except httpx.TransportError as exc:
            return _offline(self._url, exc)
        return Result.success(None)

    async def close(self) -> None:
        await self._client.aclose()
