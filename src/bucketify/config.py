"""SDK configuration for bucketify.

:class:`BucketifyConfig` is a dataclass that captures every tuneable knob
exposed by the SDK.  Instances are built by both :class:`StorageClient`
and :class:`AsyncStorageClient` from their keyword arguments.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Compression format constants
# ---------------------------------------------------------------------------

COMPRESS_FORMAT_EXTENSIONS: dict[str, str] = {
    "jpeg": "jpg",
    "webp": "webp",
    "png": "png",
}
"""File extension written for each supported compression output format."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class BucketifyConfig:
    """Complete configuration for a bucketify client.

    Parameters
    ----------
    endpoint:
        API root URL of the storage service, e.g.
        ``"https://cloud.appwrite.io/v1"``.  A trailing ``/`` is removed.
    project_id:
        Project the bucket belongs to.  Sent as ``X-Appwrite-Project``
        and used by the ``"view"`` URL variant.
    bucket_id:
        Bucket every operation of the client targets.
    api_key:
        Optional server API key sent as ``X-Appwrite-Key``.  Never logged.
    url_variant:
        Shape of the URLs returned for stored files.

        * ``"file"`` -- ``{endpoint}/storage/buckets/{bucket}/files/{id}``.
        * ``"view"`` -- the same, suffixed with ``/view?project={project_id}``.
    compress_max_width:
        Images wider than this are downscaled (aspect ratio kept).
    compress_quality:
        Encoder quality for lossy output formats (1-100).
    compress_format:
        Output codec of the compressor: ``"jpeg"``, ``"webp"`` or ``"png"``.
    compress_fallback:
        Behaviour when compression fails.

        * ``"original"`` -- upload the unmodified source file.
        * ``"raise"`` -- abort with :class:`ImageCompressionFailure`.
    keep_compressed:
        Keep the compressed copy on disk after the upload call returns.
    timeout_seconds:
        HTTP request timeout in seconds.
    connectivity_url:
        URL probed before each mutating operation.  Defaults to
        ``{endpoint}/health/version``.
    connectivity_timeout_seconds:
        Timeout of the connectivity probe in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~bucketify.observability.MetricsHook` backend.
    logger:
        Optional logger replacing the default ``bucketify.client`` logger.
    on_success:
        Fire-and-forget hook called after every successful step.
    on_error:
        Fire-and-forget hook called with every classified failure.
    debug_dump_payload:
        Write the (redacted) request/response of every API call to *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    endpoint: str = "https://cloud.appwrite.io/v1"

    project_id: str = ""

    bucket_id: str = ""

    api_key: str | None = None

    url_variant: Literal["file", "view"] = "file"

    # ── Compression ─────────────────────────────────────────────────────
    compress_max_width: int = 1080

    compress_quality: int = 75

    compress_format: Literal["jpeg", "webp", "png"] = "jpeg"

    compress_fallback: Literal["original", "raise"] = "original"

    keep_compressed: bool = False

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    connectivity_url: str | None = None

    connectivity_timeout_seconds: float = 5.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    logger: logging.Logger | None = None

    on_success: Callable[[], Any] | None = None

    on_error: Callable[[Any], Any] | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        self.endpoint = self.endpoint.rstrip("/")
        parsed = urlparse(self.endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"endpoint must be an absolute http(s) URL, got {self.endpoint!r}")
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"endpoint uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API key, or target localhost for testing."
            )

        if self.url_variant not in ("file", "view"):
            raise ValueError(f"url_variant must be 'file' or 'view', got {self.url_variant!r}")
        if self.compress_format not in COMPRESS_FORMAT_EXTENSIONS:
            raise ValueError(
                f"compress_format must be one of {sorted(COMPRESS_FORMAT_EXTENSIONS)}, "
                f"got {self.compress_format!r}"
            )
        if self.compress_fallback not in ("original", "raise"):
            raise ValueError(
                f"compress_fallback must be 'original' or 'raise', got {self.compress_fallback!r}"
            )
        if self.compress_max_width < 1:
            raise ValueError(f"compress_max_width must be >= 1, got {self.compress_max_width}")
        if not 1 <= self.compress_quality <= 100:
            raise ValueError(f"compress_quality must be in [1, 100], got {self.compress_quality}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.connectivity_timeout_seconds <= 0:
            raise ValueError(
                f"connectivity_timeout_seconds must be > 0, got {self.connectivity_timeout_seconds}"
            )

    @property
    def resolved_connectivity_url(self) -> str:
        """The URL the connectivity probe requests."""
        return self.connectivity_url or f"{self.endpoint}/health/version"

    @property
    def compress_extension(self) -> str:
        """File extension of compressed output, without the dot."""
        return COMPRESS_FORMAT_EXTENSIONS[self.compress_format]

    def __repr__(self) -> str:
        """Mask the API key to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "api_key" and val is not None:
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"api_key='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"BucketifyConfig({', '.join(parts)})"
