"""File API wrappers for the storage REST API.

Provides :class:`FileAPI` (sync) and :class:`AsyncFileAPI` (async)
wrappers for the three primitives the clients need:

1. **Create file** -- multipart upload of a local file under a chosen id.
2. **Delete file** -- remove a stored file by id.
3. **Get file** -- fetch a stored file's metadata by id.
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

from bucketify.models import UploadImageParams

from .transport import AsyncStorageTransport, StorageTransport


def _files_path(bucket_id: str) -> str:
    return f"/storage/buckets/{quote(bucket_id, safe='')}/files"


def _file_path(bucket_id: str, file_id: str) -> str:
    return f"{_files_path(bucket_id)}/{quote(file_id, safe='')}"


def _multipart(params: UploadImageParams, content: bytes) -> dict[str, Any]:
    name = os.path.basename(params.path)
    content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return {
        "data": {"fileId": params.file_id},
        "files": {"file": (name, content, content_type)},
    }


class FileAPI:
    """Synchronous wrapper for the storage file endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`StorageTransport` instance.
    """

    def __init__(self, transport: StorageTransport) -> None:
        self._transport = transport

    def create_file(self, params: UploadImageParams) -> dict[str, Any]:
        """Upload ``params.path`` as ``params.file_id`` into ``params.bucket_id``.

        Returns
        -------
        dict
            The created file object, including ``$id``.
        """
        content = Path(params.path).read_bytes()
        return self._transport.request(
            "POST",
            _files_path(params.bucket_id),
            **_multipart(params, content),
        )

    def delete_file(self, bucket_id: str, file_id: str) -> None:
        """Delete a stored file."""
        self._transport.request("DELETE", _file_path(bucket_id, file_id))

    def get_file(self, bucket_id: str, file_id: str) -> dict[str, Any]:
        """Retrieve the metadata of a stored file.

        Returns
        -------
        dict
            The file object (``$id``, ``bucketId``, ``name``, ``mimeType``,
            ``sizeOriginal``, ...).
        """
        return self._transport.request("GET", _file_path(bucket_id, file_id))


class AsyncFileAPI:
    """Asynchronous wrapper for the storage file endpoints.

    Mirrors :class:`FileAPI` but all methods are coroutines.  The local
    file is read in the loop's default executor.
    """

    def __init__(self, transport: AsyncStorageTransport) -> None:
        self._transport = transport

    async def create_file(self, params: UploadImageParams) -> dict[str, Any]:
        """Upload a local file (async).

        See :meth:`FileAPI.create_file`.
        """
        loop = asyncio.get_running_loop()
        content = await loop.run_in_executor(None, Path(params.path).read_bytes)
        return await self._transport.request(
            "POST",
            _files_path(params.bucket_id),
            **_multipart(params, content),
        )

    async def delete_file(self, bucket_id: str, file_id: str) -> None:
        """Delete a stored file (async)."""
        await self._transport.request("DELETE", _file_path(bucket_id, file_id))

    async def get_file(self, bucket_id: str, file_id: str) -> dict[str, Any]:
        """Retrieve the metadata of a stored file (async)."""
        return await self._transport.request("GET", _file_path(bucket_id, file_id))
