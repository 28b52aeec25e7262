"""Synchronous storage client.

:class:`StorageClient` is the blocking counterpart of
:class:`AsyncStorageClient`.  Single-file operations run entirely on the
calling thread, compression included.  Batch operations fan their items
out to a thread pool of up to :data:`MAX_BATCH_WORKERS` threads and fail
on the first error.

Usage::

    from bucketify import StorageClient, UploadRequest

    with StorageClient(project_id="app", bucket_id="avatars") as client:
        result = client.create_images([
            UploadRequest(file_id="a-1", path="one.jpg"),
            UploadRequest(file_id="a-2", path="two.png"),
        ])
        urls = result.unwrap()
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, TypeVar

from bucketify.config import BucketifyConfig
from bucketify.image import OperationStateMachine, compress_image
from bucketify.models import (
    Operation,
    OperationState,
    PreviewOutputFormat,
    Result,
    StoredFile,
    UploadImageParams,
    UploadRequest,
)
from bucketify.observability import NoopMetricsHook, Telemetry, get_logger
from bucketify.pipeline import StoragePipeline
from bucketify.storage_api.connectivity import ConnectivityProbe
from bucketify.storage_api.files import FileAPI
from bucketify.storage_api.transport import StorageTransport

T = TypeVar("T")

MAX_BATCH_WORKERS = 32
"""Upper bound on threads used by one batch call."""


def _fan_out(fn: Callable[..., T], calls: Sequence[tuple[Any, ...]]) -> list[T]:
    """Run ``fn(*args)`` for every entry of *calls* concurrently.

    Returns the results in input order.  As soon as any call raises, the
    exception of the lowest-index failed call among those finished is
    re-raised; calls still running are not cancelled and finish in the
    background.
    """
    if not calls:
        return []

    executor = ThreadPoolExecutor(
        max_workers=min(len(calls), MAX_BATCH_WORKERS), thread_name_prefix="bucketify",
    )
    try:
        futures = [executor.submit(fn, *args) for args in calls]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False)


class StorageClient:
    """Synchronous client for one storage bucket.

    Parameters
    ----------
    project_id:
        Project the bucket belongs to.
    bucket_id:
        Bucket every operation targets.
    connectivity:
        Optional probe replacing the default HTTP reachability check.  It
        must provide ``check_internet_connection() -> Result[None]``.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`BucketifyConfig`.
    """

    def __init__(
        self,
        project_id: str,
        bucket_id: str,
        connectivity: Any | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = BucketifyConfig(project_id=project_id, bucket_id=bucket_id, **kwargs)
        self._log = self._config.logger or get_logger("bucketify.client")
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._telemetry = Telemetry(
            on_success=self._config.on_success,
            on_error=self._config.on_error,
            metrics=self._metrics,
            logger=self._log,
        )
        self._transport = StorageTransport(self._config)
        self._files = FileAPI(self._transport)
        self._owns_probe = connectivity is None
        self._connectivity = connectivity or ConnectivityProbe(self._config)
        self._pipeline = StoragePipeline(self._config, self._telemetry, self._metrics, self._log)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_image(self, file_id: str, path: str) -> Result[str]:
        """Validate, compress and upload an image.

        Parameters
        ----------
        file_id:
            Unique id to store the file under.
        path:
            Local path of the image.

        Returns
        -------
        Result[str]
            The URL of the created file, or the classified failure.
        """
        op = "create_image"
        machine = OperationStateMachine(op, self._log)
        self._log.debug(
            "Creating file",
            extra={"extra_fields": {"op": op, "file_id": file_id, "path": path}},
        )

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        try:
            url = self._create_one(file_id, path, machine, op)
        except Exception as exc:
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.UPLOAD, op, f"Error creating file: {file_id}",
                    file_id=file_id,
                )
            )

        self._log.debug(
            "File created",
            extra={"extra_fields": {"op": op, "file_id": file_id, "url": url}},
        )
        self._telemetry.success(op)
        return Result.success(url)

    def create_images(self, files: Sequence[UploadRequest]) -> Result[list[str]]:
        """Create several images concurrently, failing eagerly.

        See :meth:`AsyncStorageClient.create_images` for the batch
        contract.  Items run on worker threads; after the first failure
        the remaining items keep running in the background.
        """
        op = "create_images"
        machine = OperationStateMachine(op, self._log)
        self._log.debug("Creating files", extra={"extra_fields": {"op": op, "count": len(files)}})

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            urls = _fan_out(
                self._create_one,
                [
                    (
                        request.file_id,
                        request.path,
                        OperationStateMachine(f"{op}[{index}]", self._log),
                        op,
                    )
                    for index, request in enumerate(files)
                ],
            )
        except Exception as exc:
            machine.fail()
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.UPLOAD, op, "Error creating files", count=len(files),
                )
            )

        machine.transition(OperationState.DONE)
        self._log.debug("Files created", extra={"extra_fields": {"op": op, "count": len(urls)}})
        self._telemetry.success(op)
        return Result.success(urls)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_image(self, file_id: str, path: str) -> Result[str]:
        """Replace the stored file *file_id* with the image at *path*.

        Delete-then-create under the same id; not transactional.  See
        :meth:`AsyncStorageClient.update_image`.
        """
        op = "update_image"
        machine = OperationStateMachine(op, self._log)
        self._log.debug(
            "Updating file",
            extra={"extra_fields": {"op": op, "file_id": file_id, "path": path}},
        )

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        try:
            upload_path = self._prepare(file_id, path, machine, op)
            machine.transition(OperationState.CALLING_TRANSPORT)
            try:
                self._files.delete_file(self._config.bucket_id, file_id)
                created = self._files.create_file(
                    UploadImageParams(
                        bucket_id=self._config.bucket_id, file_id=file_id, path=upload_path,
                    )
                )
            finally:
                self._pipeline.discard_compressed(upload_path, path)
            machine.transition(OperationState.BUILDING_RESULT)
            url = self._pipeline.file_url(created["$id"])
        except Exception as exc:
            machine.fail()
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.UPDATE, op, f"Error updating file: {file_id}",
                    file_id=file_id,
                )
            )

        machine.transition(OperationState.DONE)
        self._log.debug(
            "File updated",
            extra={"extra_fields": {"op": op, "file_id": file_id, "url": url}},
        )
        self._telemetry.success(op)
        return Result.success(url)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_image(self, file_id: str) -> Result[None]:
        """Delete the stored file *file_id*."""
        op = "delete_image"
        machine = OperationStateMachine(op, self._log)
        self._log.debug("Deleting file", extra={"extra_fields": {"op": op, "file_id": file_id}})

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            self._files.delete_file(self._config.bucket_id, file_id)
        except Exception as exc:
            machine.fail()
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.REMOVE, op, f"Error removing file: {file_id}",
                    file_id=file_id,
                )
            )

        machine.transition(OperationState.DONE)
        self._log.debug("File deleted", extra={"extra_fields": {"op": op, "file_id": file_id}})
        self._telemetry.success(op)
        return Result.success(None)

    def delete_images(self, file_ids: Sequence[str]) -> Result[None]:
        """Delete several stored files concurrently, failing eagerly."""
        op = "delete_images"
        machine = OperationStateMachine(op, self._log)
        self._log.debug("Deleting files", extra={"extra_fields": {"op": op, "count": len(file_ids)}})

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            _fan_out(
                self._files.delete_file,
                [(self._config.bucket_id, file_id) for file_id in file_ids],
            )
        except Exception as exc:
            machine.fail()
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.REMOVE, op, "Error removing files", count=len(file_ids),
                )
            )

        machine.transition(OperationState.DONE)
        self._log.debug("Files deleted", extra={"extra_fields": {"op": op, "count": len(file_ids)}})
        self._telemetry.success(op)
        return Result.success(None)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_image(self, file_id: str) -> Result[StoredFile]:
        """Fetch the metadata of the stored file *file_id*."""
        op = "get_image"
        machine = OperationStateMachine(op, self._log)

        offline = self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            data = self._files.get_file(self._config.bucket_id, file_id)
            machine.transition(OperationState.BUILDING_RESULT)
            stored = StoredFile.from_api(data, self._pipeline.file_url(data["$id"]))
        except Exception as exc:
            machine.fail()
            return Result.error(
                self._pipeline.fail(
                    exc, Operation.READ, op, f"Error getting file: {file_id}",
                    file_id=file_id,
                )
            )

        machine.transition(OperationState.DONE)
        self._telemetry.success(op)
        return Result.success(stored)

    # ------------------------------------------------------------------
    # URLs
    # ------------------------------------------------------------------

    def get_image_url(self, file_id: str) -> str:
        """Return the URL of the stored file *file_id*.  Never fails."""
        return self._pipeline.get_image_url(file_id)

    def get_image_preview_url(
        self,
        file_id: str,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
        format: PreviewOutputFormat | str | None = None,
    ) -> str:
        """Return a server-rendered preview URL of the stored image."""
        return self._pipeline.get_image_preview_url(file_id, width, height, quality, format)

    def get_image_id_from_url(self, url: str) -> Result[str]:
        """Return the file id encoded in a file URL of this endpoint."""
        return self._pipeline.get_image_id_from_url(url)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_connectivity(
        self, op: str, machine: OperationStateMachine,
    ) -> Result[Any] | None:
        result = self._connectivity.check_internet_connection()
        if result.is_success:
            return None
        machine.fail()
        return Result.error(self._pipeline.offline(result, op))

    def _prepare(
        self, file_id: str, path: str, machine: OperationStateMachine, op: str,
    ) -> str:
        machine.transition(OperationState.VALIDATING)
        self._pipeline.check_format(path, file_id, op)

        machine.transition(OperationState.COMPRESSING)
        result = compress_image(self._pipeline.compression_params(file_id, path))
        return self._pipeline.resolve_compression(result, file_id, path, op)

    def _create_one(
        self, file_id: str, path: str, machine: OperationStateMachine, op: str,
    ) -> str:
        try:
            upload_path = self._prepare(file_id, path, machine, op)
            machine.transition(OperationState.CALLING_TRANSPORT)
            try:
                created = self._files.create_file(
                    UploadImageParams(
                        bucket_id=self._config.bucket_id, file_id=file_id, path=upload_path,
                    )
                )
            finally:
                self._pipeline.discard_compressed(upload_path, path)
            machine.transition(OperationState.BUILDING_RESULT)
            url = self._pipeline.file_url(created["$id"])
        except Exception:
            machine.fail()
            raise
        machine.transition(OperationState.DONE)
        return url

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP connections and release resources."""
        self._transport.close()
        if self._owns_probe:
            self._connectivity.close()

    def __enter__(self) -> StorageClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
