"""Steps shared by the sync and async storage clients.

:class:`StoragePipeline` owns everything about an operation that does not
depend on how I/O is awaited: format validation, the compression policy,
failure classification and reporting, and the URL operations.  The
clients only sequence these steps around their transport calls.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bucketify.classify import classify
from bucketify.config import BucketifyConfig
from bucketify.errors import FormatFailure, NoInternetConnectionFailure, StorageFailure
from bucketify.image import CompressedImage, CompressionParams, file_extension, is_image
from bucketify.models import Operation, PreviewOptions, PreviewOutputFormat, Result
from bucketify.observability import Telemetry, log_failure
from bucketify.urls import build_file_url, build_preview_url, parse_file_id


class StoragePipeline:
    """Transport-independent steps of every client operation.

    Parameters
    ----------
    config:
        The client configuration.
    telemetry:
        Emit helper for success/failure hooks.
    metrics:
        Metrics backend (already defaulted to a no-op).
    logger:
        Client logger.
    """

    def __init__(
        self,
        config: BucketifyConfig,
        telemetry: Telemetry,
        metrics,
        logger: logging.Logger,
    ) -> None:
        self._config = config
        self._telemetry = telemetry
        self._metrics = metrics
        self._log = logger

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def offline(self, result: Result[None], op: str) -> StorageFailure:
        """Turn an unsuccessful probe result into the reported failure."""
        failure = result.failure
        if not isinstance(failure, NoInternetConnectionFailure):
            failure = NoInternetConnectionFailure(
                error=str(failure), context={"op": op}, cause=failure,
            )
        log_failure(self._log, "No internet connection", failure, op=op)
        self._telemetry.failure(op, failure)
        return failure

    # ------------------------------------------------------------------
    # Validation and compression
    # ------------------------------------------------------------------

    def check_format(self, path: str, file_id: str, op: str) -> None:
        """Raise :class:`FormatFailure` unless *path* is an accepted image."""
        self._log.debug(
            "Checking if file is image",
            extra={"extra_fields": {"op": op, "file_id": file_id, "path": path}},
        )
        if not is_image(path):
            raise FormatFailure(
                error="File format not supported",
                context={"path": path, "extension": file_extension(path)},
            )
        self._telemetry.success(op)

    def compression_params(self, file_id: str, path: str) -> CompressionParams:
        return CompressionParams(
            source_path=path,
            target_id=file_id,
            max_width=self._config.compress_max_width,
            quality=self._config.compress_quality,
            output_format=self._config.compress_format,
            extension=self._config.compress_extension,
        )

    def resolve_compression(
        self,
        result: Result[CompressedImage],
        file_id: str,
        path: str,
        op: str,
    ) -> str:
        """Return the path to upload given the compressor's *result*.

        On failure, either falls back to the original *path* or raises the
        :class:`ImageCompressionFailure`, per ``config.compress_fallback``.
        """
        if result.is_success:
            compressed: CompressedImage = result.value  # type: ignore[assignment]
            self._metrics.gauge(
                "bucketify.compressed_bytes",
                compressed.size_bytes,
                tags={"op": op},
            )
            self._telemetry.success(op)
            return compressed.path

        if self._config.compress_fallback == "raise":
            raise result.failure  # type: ignore[misc]

        self._metrics.increment("bucketify.compression_fallback_total", tags={"op": op})
        self._log.warning(
            "Compression failed, uploading original file",
            extra={
                "extra_fields": {
                    "op": op,
                    "file_id": file_id,
                    "path": path,
                    "error": result.failure.error if result.failure else "",
                }
            },
        )
        return path

    def discard_compressed(self, upload_path: str, source_path: str) -> None:
        """Remove the compressed copy once the transport call has returned."""
        if upload_path == source_path or self._config.keep_compressed:
            return
        Path(upload_path).unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Failures
    # ------------------------------------------------------------------

    def fail(
        self,
        error: BaseException,
        operation: Operation,
        op: str,
        message: str,
        **fields: object,
    ) -> StorageFailure:
        """Classify *error*, log it and signal it; return the failure."""
        failure = classify(error, operation)
        log_failure(self._log, message, failure, op=op, **fields)
        self._telemetry.failure(op, failure)
        return failure

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def file_url(self, file_id: str) -> str:
        """Build the file URL in the configured variant, without telemetry."""
        project_id = self._config.project_id if self._config.url_variant == "view" else None
        return build_file_url(
            self._config.endpoint, self._config.bucket_id, file_id, project_id,
        )

    def get_image_url(self, file_id: str) -> str:
        self._log.debug(
            "Getting file url",
            extra={"extra_fields": {"op": "get_image_url", "file_id": file_id}},
        )
        url = self.file_url(file_id)
        self._telemetry.success("get_image_url")
        return url

    def get_image_preview_url(
        self,
        file_id: str,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
        format: PreviewOutputFormat | str | None = None,
    ) -> str:
        options = PreviewOptions(width=width, height=height, quality=quality, format=format)
        url = build_preview_url(
            self._config.endpoint, self._config.bucket_id, file_id, options,
        )
        self._log.debug(
            "File preview url",
            extra={"extra_fields": {"op": "get_image_preview_url", "file_id": file_id, "url": url}},
        )
        self._telemetry.success("get_image_preview_url")
        return url

    def get_image_id_from_url(self, url: str) -> Result[str]:
        op = "get_image_id_from_url"
        result = parse_file_id(url, self._config.endpoint)
        if result.is_error:
            log_failure(self._log, "Error getting file id from url", result.failure, op=op, url=url)
            self._telemetry.failure(op, result.failure)  # type: ignore[arg-type]
            return result

        self._log.debug(
            "File id extracted from url",
            extra={"extra_fields": {"op": op, "file_id": result.value}},
        )
        self._telemetry.success(op)
        return result
