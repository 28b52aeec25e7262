"""Shared test fixtures for the bucketify test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from bucketify.config import BucketifyConfig
from bucketify.errors import NoInternetConnectionFailure
from bucketify.models import Result

ENDPOINT = "https://storage.example.com/v1"


class OnlineProbe:
    """Synchronous connectivity stub that always reports online."""

    def __init__(self) -> None:
        self.calls = 0

    def check_internet_connection(self) -> Result[None]:
        self.calls += 1
        return Result.success(None)

    def close(self) -> None:
        pass


class OfflineProbe(OnlineProbe):
    """Synchronous connectivity stub that always reports offline."""

    def check_internet_connection(self) -> Result[None]:
        self.calls += 1
        return Result.error(NoInternetConnectionFailure(error="unreachable"))


class AsyncOnlineProbe:
    """Asynchronous connectivity stub that always reports online."""

    def __init__(self) -> None:
        self.calls = 0

    async def check_internet_connection(self) -> Result[None]:
        self.calls += 1
        return Result.success(None)

    async def close(self) -> None:
        pass


class AsyncOfflineProbe(AsyncOnlineProbe):
    """Asynchronous connectivity stub that always reports offline."""

    async def check_internet_connection(self) -> Result[None]:
        self.calls += 1
        return Result.error(NoInternetConnectionFailure(error="unreachable"))


@pytest.fixture
def config() -> BucketifyConfig:
    """Default test configuration pointing at a fake endpoint."""
    return BucketifyConfig(
        endpoint=ENDPOINT,
        project_id="proj",
        bucket_id="bucket",
        api_key="standard_secret_9876",
    )


@pytest.fixture
def make_image(tmp_path: Path):
    """Factory writing a solid-colour image and returning its path."""

    def _make(
        name: str = "photo.png",
        size: tuple[int, int] = (64, 48),
        mode: str = "RGB",
        fmt: str | None = None,
    ) -> str:
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
        if mode == "L":
            color = 128
        path = tmp_path / name
        Image.new(mode, size, color).save(path, format=fmt)
        return str(path)

    return _make


@pytest.fixture
def not_an_image(tmp_path: Path) -> str:
    """A file with an image extension whose contents cannot be decoded."""
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"this is not a jpeg")
    return str(path)


@pytest.fixture
def online_probe() -> OnlineProbe:
    return OnlineProbe()


@pytest.fixture
def offline_probe() -> OfflineProbe:
    return OfflineProbe()


@pytest.fixture
def async_online_probe() -> AsyncOnlineProbe:
    return AsyncOnlineProbe()


@pytest.fixture
def async_offline_probe() -> AsyncOfflineProbe:
    return AsyncOfflineProbe()
