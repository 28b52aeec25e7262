"""Sync and async HTTP transports for the storage REST API.

Each transport handles one request end to end:

1. Send the HTTP request with project and key headers.
2. On ``2xx`` -- return the parsed JSON response (``{}`` for empty bodies).
3. On any other status -- raise :class:`StorageApiError` carrying the
   status code and the server's error type and message.
4. On a network failure (timeout, DNS, connection reset) -- raise
   :class:`StorageApiError` with ``status_code=None``.

There is no retry: every operation makes a single attempt
and callers decide whether to re-invoke.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from bucketify.config import BucketifyConfig
from bucketify.errors import StorageApiError
from bucketify.observability import NoopMetricsHook, get_logger

log = get_logger("bucketify.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _build_headers(config: BucketifyConfig) -> dict[str, str]:
    headers = {"X-Appwrite-Project": config.project_id}
    if config.api_key:
        headers["X-Appwrite-Key"] = config.api_key
    return headers


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise :class:`StorageApiError` for a non-2xx *response*."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    server_message = body.get("message") or response.text[:500]
    raise StorageApiError(
        message=f"{method} {path} failed with {response.status_code}: {server_message}",
        status_code=response.status_code,
        error_type=body.get("type", ""),
    )


def _network_error(method: str, path: str, exc: httpx.TransportError) -> StorageApiError:
    log.warning(
        "Request network error",
        extra={
            "extra_fields": {
                "op": "request",
                "method": method,
                "path": path,
                "error": str(exc),
            }
        },
    )
    return StorageApiError(
        message=f"Network error on {method} {path}: {exc}",
        status_code=None,
        cause=exc,
    )


def _parse_body(response: httpx.Response) -> dict:
    if response.status_code == 204 or not response.content:
        return {}
    result: dict = response.json()
    return result


def _dump_payload(
    method: str,
    url: str,
    request_fields: dict | None,
    response_status: int | None,
    response_body: Any | None,
    secret: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from bucketify.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if request_fields is not None:
        dump["request_fields"] = request_fields
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, secret), indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: BucketifyConfig,
    method: str,
    response: httpx.Response,
    request_fields: dict | None,
) -> None:
    """Emit a redacted debug dump of request/response if enabled."""
    if not config.debug_dump_payload:
        return
    try:
        resp_body = response.json()
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        method, str(response.url), request_fields,
        response.status_code, resp_body,
        secret=config.api_key,
    )


def _record(metrics: Any, method: str, path: str, status: str, elapsed_ms: float) -> None:
    tags = {"method": method, "path": path, "status": status}
    metrics.increment("bucketify.requests_total", tags=tags)
    metrics.timing("bucketify.request_duration_ms", elapsed_ms, tags=tags)


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class StorageTransport:
    """Synchronous HTTP transport for the storage API.

    Parameters
    ----------
    config:
        A :class:`BucketifyConfig` controlling endpoint, credentials,
        timeout and proxy.
    """

    def __init__(self, config: BucketifyConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.Client(
            base_url=config.endpoint,
            headers=_build_headers(config),
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def project_id(self) -> str:
        return self._config.project_id

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute one HTTP request against the storage API.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            API path relative to the endpoint (e.g.
            ``/storage/buckets/b/files``).
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``data=``,
            ``files=``, ``params=``, ``headers=``).

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        StorageApiError
            On any non-2xx response or network failure.
        """
        t0 = time.monotonic()
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            _record(self._metrics, method, path, "error", (time.monotonic() - t0) * 1000)
            raise _network_error(method, path, exc) from exc

        _record(
            self._metrics, method, path, str(response.status_code),
            (time.monotonic() - t0) * 1000,
        )
        _emit_debug_dump(self._config, method, response, kwargs.get("data"))

        if not 200 <= response.status_code < 300:
            _raise_for_status(response, method, path)
        return _parse_body(response)

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> StorageTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncStorageTransport:
    """Asynchronous HTTP transport for the storage API.

    Mirrors :class:`StorageTransport` but uses ``httpx.AsyncClient``.
    """

    def __init__(self, config: BucketifyConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(
            base_url=config.endpoint,
            headers=_build_headers(config),
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def project_id(self) -> str:
        return self._config.project_id

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute one HTTP request against the storage API (async).

        See :meth:`StorageTransport.request`.
        """
        t0 = time.monotonic()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            _record(self._metrics, method, path, "error", (time.monotonic() - t0) * 1000)
            raise _network_error(method, path, exc) from exc

        _record(
            self._metrics, method, path, str(response.status_code),
            (time.monotonic() - t0) * 1000,
        )
        _emit_debug_dump(self._config, method, response, kwargs.get("data"))

        if not 200 <= response.status_code < 300:
            _raise_for_status(response, method, path)
        return _parse_body(response)

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncStorageTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
