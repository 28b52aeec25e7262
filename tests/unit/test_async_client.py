"""Tests for AsyncStorageClient.

Mirrors test_client.py for the async surface, plus the behaviours that
only exist with an event loop: compression in the executor, gather-based
batches and scheduled async hooks.
"""

from __future__ import annotations

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bucketify.async_client import AsyncStorageClient
from bucketify.errors import (
    FormatFailure,
    ImageCompressionFailure,
    NoInternetConnectionFailure,
    NoPermissionsFailure,
    RemoveFileFailure,
    ServerFailure,
    StorageApiError,
    UpdateFileFailure,
    UploadFileFailure,
)
from bucketify.models import UploadImageParams, UploadRequest

ENDPOINT = "https://storage.example.com/v1"
FILES_URL = f"{ENDPOINT}/storage/buckets/bucket/files"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _echo_created(params: UploadImageParams) -> dict:
    return {"$id": params.file_id}


def _make_client(probe, **kwargs) -> AsyncStorageClient:
    """Create an AsyncStorageClient with a mocked async file API."""
    kwargs.setdefault("logger", MagicMock())
    client = AsyncStorageClient(
        project_id="proj", bucket_id="bucket", endpoint=ENDPOINT, connectivity=probe, **kwargs,
    )
    client._files = MagicMock()
    client._files.create_file = AsyncMock(side_effect=_echo_created)
    client._files.delete_file = AsyncMock(return_value=None)
    client._files.get_file = AsyncMock()
    return client


def _api_error(status: int | None) -> StorageApiError:
    return StorageApiError("server said no", status_code=status)


# ===========================================================================
# Lifecycle
# ===========================================================================


class TestAsyncClientLifecycle:
    @pytest.mark.asyncio
    async def test_async_context_manager_closes_owned_resources(self):
        client = AsyncStorageClient(project_id="p", bucket_id="b", endpoint=ENDPOINT)
        client._transport = MagicMock()
        client._transport.close = AsyncMock()
        client._connectivity = MagicMock()
        client._connectivity.close = AsyncMock()
        async with client:
            pass
        client._transport.close.assert_awaited_once()
        client._connectivity.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_injected_probe_not_closed(self):
        probe = MagicMock()
        probe.close = AsyncMock()
        client = AsyncStorageClient(
            project_id="p", bucket_id="b", endpoint=ENDPOINT, connectivity=probe,
        )
        client._transport = MagicMock()
        client._transport.close = AsyncMock()
        await client.close()
        probe.close.assert_not_awaited()


# ===========================================================================
# create_image
# ===========================================================================


class TestAsyncCreateImage:
    @pytest.mark.asyncio
    async def test_success(self, async_online_probe, make_image):
        source = make_image("photo.png", size=(1500, 300))
        client = _make_client(async_online_probe)

        result = await client.create_image("avatar-1", source)

        assert result.value == f"{FILES_URL}/avatar-1"
        uploaded = client._files.create_file.call_args.args[0]
        assert uploaded.path.endswith("avatar-1.jpg")
        assert not os.path.exists(uploaded.path)
        assert os.path.exists(source)

    @pytest.mark.asyncio
    async def test_compression_runs_in_executor(self, async_online_probe, make_image):
        client = _make_client(async_online_probe)
        loop = asyncio.get_running_loop()
        with patch.object(loop, "run_in_executor", wraps=loop.run_in_executor) as spy:
            await client.create_image("avatar-1", make_image())
        assert spy.call_args.args[0] is None
        assert spy.call_args.args[1].__name__ == "compress_image"

    @pytest.mark.asyncio
    async def test_executor_unavailable_falls_back(self, async_online_probe, make_image):
        source = make_image()
        client = _make_client(async_online_probe)
        loop = asyncio.get_running_loop()
        with patch.object(loop, "run_in_executor", side_effect=RuntimeError("shut down")):
            result = await client.create_image("avatar-1", source)
        assert result.is_success
        assert client._files.create_file.call_args.args[0].path == source

    @pytest.mark.asyncio
    async def test_executor_unavailable_with_raise_policy(self, async_online_probe, make_image):
        client = _make_client(async_online_probe, compress_fallback="raise")
        loop = asyncio.get_running_loop()
        with patch.object(loop, "run_in_executor", side_effect=RuntimeError("shut down")):
            result = await client.create_image("avatar-1", make_image())
        assert isinstance(result.failure, ImageCompressionFailure)

    @pytest.mark.asyncio
    async def test_offline(self, async_offline_probe, make_image):
        client = _make_client(async_offline_probe)
        result = await client.create_image("avatar-1", make_image())
        assert isinstance(result.failure, NoInternetConnectionFailure)
        client._files.create_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_format_failure(self, async_online_probe, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"\x00")
        client = _make_client(async_online_probe)
        result = await client.create_image("clip", str(path))
        assert isinstance(result.failure, FormatFailure)

    @pytest.mark.asyncio
    async def test_compression_fallback(self, async_online_probe, not_an_image):
        client = _make_client(async_online_probe)
        result = await client.create_image("broken", not_an_image)
        assert result.is_success
        assert client._files.create_file.call_args.args[0].path == not_an_image

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,expected",
        [(403, NoPermissionsFailure), (500, UploadFileFailure), (None, UploadFileFailure)],
    )
    async def test_transport_errors(self, async_online_probe, make_image, status, expected):
        client = _make_client(async_online_probe)
        client._files.create_file.side_effect = _api_error(status)
        result = await client.create_image("avatar-1", make_image())
        assert type(result.failure) is expected

    @pytest.mark.asyncio
    async def test_async_error_hook_scheduled(self, async_offline_probe, make_image):
        seen = []
        done = asyncio.Event()

        async def on_error(failure):
            seen.append(failure)
            done.set()

        client = _make_client(async_offline_probe, on_error=on_error)
        result = await client.create_image("avatar-1", make_image())
        await asyncio.wait_for(done.wait(), timeout=1)
        assert seen == [result.failure]


# ===========================================================================
# create_images
# ===========================================================================


class TestAsyncCreateImages:
    @pytest.mark.asyncio
    async def test_all_succeed_in_order(self, async_online_probe, make_image):
        client = _make_client(async_online_probe)
        requests = [
            UploadRequest(file_id=f"img-{i}", path=make_image(f"src-{i}.png")) for i in range(3)
        ]
        result = await client.create_images(requests)
        assert result.value == [f"{FILES_URL}/img-{i}" for i in range(3)]
        assert async_online_probe.calls == 1

    @pytest.mark.asyncio
    async def test_empty(self, async_online_probe):
        client = _make_client(async_online_probe)
        assert (await client.create_images([])).value == []

    @pytest.mark.asyncio
    async def test_second_of_three_forbidden(self, async_online_probe, make_image):
        errors = []
        client = _make_client(async_online_probe, on_error=errors.append)

        async def _create(params):
            if params.file_id == "img-1":
                raise _api_error(403)
            return _echo_created(params)

        client._files.create_file = AsyncMock(side_effect=_create)
        requests = [
            UploadRequest(file_id=f"img-{i}", path=make_image(f"src-{i}.png")) for i in range(3)
        ]

        result = await client.create_images(requests)

        assert isinstance(result.failure, NoPermissionsFailure)
        assert result.value is None
        assert errors == [result.failure]

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self, async_online_probe, make_image):
        release = asyncio.Event()
        finished = []

        async def _create(params):
            if params.file_id == "fast-fail":
                raise _api_error(500)
            await release.wait()
            finished.append(params.file_id)
            return _echo_created(params)

        client = _make_client(async_online_probe)
        client._files.create_file = AsyncMock(side_effect=_create)

        result = await client.create_images([
            UploadRequest(file_id="slow", path=make_image("slow.png")),
            UploadRequest(file_id="fast-fail", path=make_image("fast.png")),
        ])
        assert isinstance(result.failure, UploadFileFailure)

        release.set()
        for _ in range(20):
            if finished:
                break
            await asyncio.sleep(0.01)
        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_offline(self, async_offline_probe, make_image):
        client = _make_client(async_offline_probe)
        result = await client.create_images([UploadRequest(file_id="a", path=make_image())])
        assert isinstance(result.failure, NoInternetConnectionFailure)


# ===========================================================================
# update / delete / get
# ===========================================================================


class TestAsyncUpdateImage:
    @pytest.mark.asyncio
    async def test_delete_then_create(self, async_online_probe, make_image):
        client = _make_client(async_online_probe)
        result = await client.update_image("avatar-1", make_image())
        assert result.value == f"{FILES_URL}/avatar-1"
        names = [c[0] for c in client._files.method_calls]
        assert names == ["delete_file", "create_file"]

    @pytest.mark.asyncio
    async def test_create_fails_after_delete(self, async_online_probe, make_image):
        client = _make_client(async_online_probe)
        client._files.create_file.side_effect = _api_error(502)
        result = await client.update_image("avatar-1", make_image())
        assert isinstance(result.failure, UpdateFileFailure)
        client._files.delete_file.assert_awaited_once_with("bucket", "avatar-1")

    @pytest.mark.asyncio
    async def test_invalid_format_does_not_delete(self, async_online_probe, tmp_path):
        path = tmp_path / "a.bmp"
        path.write_bytes(b"BM")
        client = _make_client(async_online_probe)
        result = await client.update_image("avatar-1", str(path))
        assert isinstance(result.failure, FormatFailure)
        client._files.delete_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_fails(self, async_online_probe, make_image):
        client = _make_client(async_online_probe)
        client._files.delete_file.side_effect = _api_error(404)
        result = await client.update_image("avatar-1", make_image())
        assert isinstance(result.failure, UpdateFileFailure)
        client._files.create_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_offline(self, async_offline_probe, make_image):
        client = _make_client(async_offline_probe)
        result = await client.update_image("avatar-1", make_image())
        assert isinstance(result.failure, NoInternetConnectionFailure)
        assert async_offline_probe.calls == 1
        client._files.delete_file.assert_not_awaited()
        client._files.create_file.assert_not_awaited()


class TestAsyncDelete:
    @pytest.mark.asyncio
    async def test_delete_image(self, async_online_probe):
        client = _make_client(async_online_probe)
        assert (await client.delete_image("a")).is_success
        client._files.delete_file.assert_awaited_once_with("bucket", "a")

    @pytest.mark.asyncio
    async def test_delete_image_failure(self, async_online_probe):
        client = _make_client(async_online_probe)
        client._files.delete_file.side_effect = _api_error(404)
        assert isinstance((await client.delete_image("a")).failure, RemoveFileFailure)

    @pytest.mark.asyncio
    async def test_delete_images(self, async_online_probe):
        client = _make_client(async_online_probe)
        assert (await client.delete_images(["a", "b"])).is_success
        assert client._files.delete_file.await_count == 2

    @pytest.mark.asyncio
    async def test_delete_images_one_forbidden(self, async_online_probe):
        client = _make_client(async_online_probe)

        async def _delete(bucket_id, file_id):
            if file_id == "b":
                raise _api_error(401)

        client._files.delete_file = AsyncMock(side_effect=_delete)
        result = await client.delete_images(["a", "b", "c"])
        assert isinstance(result.failure, NoPermissionsFailure)

    @pytest.mark.asyncio
    async def test_delete_image_offline(self, async_offline_probe):
        client = _make_client(async_offline_probe)
        result = await client.delete_image("a")
        assert isinstance(result.failure, NoInternetConnectionFailure)
        client._files.delete_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_images_offline(self, async_offline_probe):
        client = _make_client(async_offline_probe)
        assert isinstance(
            (await client.delete_images(["a"])).failure, NoInternetConnectionFailure,
        )
        client._files.delete_file.assert_not_awaited()


class TestAsyncGetImage:
    @pytest.mark.asyncio
    async def test_success(self, async_online_probe):
        client = _make_client(async_online_probe)
        client._files.get_file.return_value = {"$id": "a", "bucketId": "bucket", "sizeOriginal": 5}
        stored = (await client.get_image("a")).unwrap()
        assert stored.url == f"{FILES_URL}/a"

    @pytest.mark.asyncio
    async def test_server_failure(self, async_online_probe):
        client = _make_client(async_online_probe)
        client._files.get_file.side_effect = _api_error(503)
        assert isinstance((await client.get_image("a")).failure, ServerFailure)


class TestAsyncUrls:
    def test_url_helpers_are_sync(self, async_online_probe):
        client = _make_client(async_online_probe)
        url = client.get_image_url("a")
        assert url == f"{FILES_URL}/a"
        assert client.get_image_id_from_url(url).unwrap() == "a"
        assert client.get_image_preview_url("a", height=50) == f"{FILES_URL}/a/preview?height=50"
