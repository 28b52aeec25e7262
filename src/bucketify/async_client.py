"""Asynchronous storage client.

:class:`AsyncStorageClient` mirrors :class:`StorageClient` but every
operation that touches the network is an ``async def`` coroutine.
Compression runs in the event loop's default executor, and batch
operations issue all their items concurrently with ``asyncio.gather``.

Usage::

    import asyncio
    from bucketify import AsyncStorageClient, UploadRequest

    async def main():
        async with AsyncStorageClient(project_id="app", bucket_id="avatars") as client:
            result = await client.create_image(file_id="avatar-42", path="me.heic")
            if result.is_success:
                print(result.value)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from bucketify.config import BucketifyConfig
from bucketify.errors import ImageCompressionFailure
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
from bucketify.storage_api.connectivity import AsyncConnectivityProbe
from bucketify.storage_api.files import AsyncFileAPI
from bucketify.storage_api.transport import AsyncStorageTransport


class AsyncStorageClient:
    """Asynchronous client for one storage bucket.

    Parameters
    ----------
    project_id:
        Project the bucket belongs to.
    bucket_id:
        Bucket every operation targets.
    connectivity:
        Optional probe replacing the default HTTP reachability check.  It
        must provide ``async check_internet_connection() -> Result[None]``.
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
        self._transport = AsyncStorageTransport(self._config)
        self._files = AsyncFileAPI(self._transport)
        self._owns_probe = connectivity is None
        self._connectivity = connectivity or AsyncConnectivityProbe(self._config)
        self._pipeline = StoragePipeline(self._config, self._telemetry, self._metrics, self._log)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_image(self, file_id: str, path: str) -> Result[str]:
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

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        try:
            url = await self._create_one(file_id, path, machine, op)
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

    async def create_images(self, files: Sequence[UploadRequest]) -> Result[list[str]]:
        """Create several images concurrently.

        Connectivity is checked once.  Every item then runs the full
        create pipeline concurrently.  The batch fails eagerly: the first
        failure observed becomes the result, with no partial list.  Items
        already uploaded are not rolled back, and in-flight siblings are
        left to run to completion.

        Returns
        -------
        Result[list[str]]
            File URLs in the order of *files*, or the first failure.
        """
        op = "create_images"
        machine = OperationStateMachine(op, self._log)
        self._log.debug(
            "Creating files",
            extra={"extra_fields": {"op": op, "count": len(files)}},
        )

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            urls = await asyncio.gather(
                *(
                    self._create_one(
                        request.file_id,
                        request.path,
                        OperationStateMachine(f"{op}[{index}]", self._log),
                        op,
                    )
                    for index, request in enumerate(files)
                )
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
        return Result.success(list(urls))

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_image(self, file_id: str, path: str) -> Result[str]:
        """Replace the stored file *file_id* with the image at *path*.

        The image is validated and compressed first; the stored file is
        then deleted and recreated under the same id.  This is not
        transactional: if the delete succeeds and the create fails, the
        file no longer exists and :class:`UpdateFileFailure` is returned.

        Returns
        -------
        Result[str]
            The URL of the recreated file, or the classified failure.
        """
        op = "update_image"
        machine = OperationStateMachine(op, self._log)
        self._log.debug(
            "Updating file",
            extra={"extra_fields": {"op": op, "file_id": file_id, "path": path}},
        )

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        try:
            upload_path = await self._prepare(file_id, path, machine, op)
            machine.transition(OperationState.CALLING_TRANSPORT)
            try:
                await self._files.delete_file(self._config.bucket_id, file_id)
                created = await self._files.create_file(
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

    async def delete_image(self, file_id: str) -> Result[None]:
        """Delete the stored file *file_id*."""
        op = "delete_image"
        machine = OperationStateMachine(op, self._log)
        self._log.debug("Deleting file", extra={"extra_fields": {"op": op, "file_id": file_id}})

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            await self._files.delete_file(self._config.bucket_id, file_id)
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

    async def delete_images(self, file_ids: Sequence[str]) -> Result[None]:
        """Delete several stored files concurrently, failing eagerly.

        Same batch contract as :meth:`create_images`: files deleted before
        the first failure stay deleted.
        """
        op = "delete_images"
        machine = OperationStateMachine(op, self._log)
        self._log.debug("Deleting files", extra={"extra_fields": {"op": op, "count": len(file_ids)}})

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            await asyncio.gather(
                *(self._files.delete_file(self._config.bucket_id, file_id) for file_id in file_ids)
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

    async def get_image(self, file_id: str) -> Result[StoredFile]:
        """Fetch the metadata of the stored file *file_id*."""
        op = "get_image"
        machine = OperationStateMachine(op, self._log)

        offline = await self._check_connectivity(op, machine)
        if offline is not None:
            return offline

        machine.transition(OperationState.CALLING_TRANSPORT)
        try:
            data = await self._files.get_file(self._config.bucket_id, file_id)
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
        """Return a server-rendered preview URL of the stored image.

        Parameters
        ----------
        width:
            Thumbnail width in pixels.
        height:
            Thumbnail height in pixels.
        quality:
            Thumbnail quality between 0 and 100.
        format:
            ``png``, ``jpeg`` or ``webp``.
        """
        return self._pipeline.get_image_preview_url(file_id, width, height, quality, format)

    def get_image_id_from_url(self, url: str) -> Result[str]:
        """Return the file id encoded in a file URL of this endpoint."""
        return self._pipeline.get_image_id_from_url(url)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _check_connectivity(
        self, op: str, machine: OperationStateMachine,
    ) -> Result[Any] | None:
        """Return an error result if offline, else ``None``."""
        result = await self._connectivity.check_internet_connection()
        if result.is_success:
            return None
        machine.fail()
        return Result.error(self._pipeline.offline(result, op))

    async def _prepare(
        self, file_id: str, path: str, machine: OperationStateMachine, op: str,
    ) -> str:
        """Validate and compress; return the path to upload."""
        machine.transition(OperationState.VALIDATING)
        self._pipeline.check_format(path, file_id, op)

        machine.transition(OperationState.COMPRESSING)
        params = self._pipeline.compression_params(file_id, path)
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, compress_image, params)
        except RuntimeError as exc:
            # Executor unavailable (e.g. shut down): degrade like a failed compression.
            result = Result.error(
                ImageCompressionFailure(error=str(exc), context={"source_path": path}, cause=exc)
            )
        return self._pipeline.resolve_compression(result, file_id, path, op)

    async def _create_one(
        self, file_id: str, path: str, machine: OperationStateMachine, op: str,
    ) -> str:
        """Run validate -> compress -> upload -> URL for one file."""
        try:
            upload_path = await self._prepare(file_id, path, machine, op)
            machine.transition(OperationState.CALLING_TRANSPORT)
            try:
                created = await self._files.create_file(
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

    async def close(self) -> None:
        """Close the HTTP connections and release resources."""
        await self._transport.close()
        if self._owns_probe:
            await self._connectivity.close()

    async def __aenter__(self) -> AsyncStorageClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
