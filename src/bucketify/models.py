"""Public data models for the bucketify SDK.

This module contains the result wrapper, every request/response value
type, and the enums referenced by the public API surface.  All types
are plain dataclasses with no behaviour beyond construction-time
validation and structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from bucketify.errors import StorageFailure

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PreviewOutputFormat(str, Enum):
    """Output formats the server can render a preview in."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"


class Operation(str, Enum):
    """The kind of remote operation being attempted.

    Used by :func:`bucketify.classify.classify` to pick the failure
    bucket for errors that are not permission errors.
    """

    UPLOAD = "upload"
    REMOVE = "remove"
    UPDATE = "update"
    READ = "read"


class OperationState(str, Enum):
    """Lifecycle states of one logical client operation."""

    CHECKING_CONNECTIVITY = "checking_connectivity"
    """Initial state: the connectivity probe is running."""

    VALIDATING = "validating"
    """The source path is being checked for an accepted image extension."""

    COMPRESSING = "compressing"
    """The image is being resized and transcoded."""

    CALLING_TRANSPORT = "calling_transport"
    """One or more remote calls are in flight."""

    BUILDING_RESULT = "building_result"
    """Remote calls succeeded; the result URL(s) are being built."""

    DONE = "done"
    """Terminal: the operation succeeded."""

    FAILED = "failed"
    """Terminal: the operation produced a failure."""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Result(Generic[T]):
    """Success-or-failure value returned by every fallible operation.

    Exactly one of *value* and *failure* is meaningful: a result is an
    error if and only if *failure* is set.  Build instances with
    :meth:`success` and :meth:`error`.

    Attributes
    ----------
    value:
        The operation's value on success (may legitimately be ``None``).
    failure:
        The classified failure on error, else ``None``.
    """

    value: T | None = None
    failure: StorageFailure | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def error(cls, failure: StorageFailure) -> Result[T]:
        return cls(failure=failure)

    @property
    def is_success(self) -> bool:
        return self.failure is None

    @property
    def is_error(self) -> bool:
        return self.failure is not None

    def unwrap(self) -> T:
        """Return the value, or raise the carried failure."""
        if self.failure is not None:
            raise self.failure
        return self.value  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Request / value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileRef:
    """Identifies a stored object: a file id within a bucket."""

    file_id: str
    bucket_id: str


@dataclass(frozen=True)
class UploadRequest:
    """One item of a batch create: the id to store under and the local path.

    Batch results correlate with requests by index.
    """

    file_id: str
    path: str


@dataclass(frozen=True)
class UploadImageParams:
    """The unit of work handed to the transport's create primitive."""

    bucket_id: str
    file_id: str
    path: str


@dataclass(frozen=True)
class PreviewOptions:
    """Optional query parameters for a preview URL.

    Absent fields are omitted from the generated query string rather
    than defaulted.

    Attributes
    ----------
    width:
        Thumbnail width in pixels (> 0).
    height:
        Thumbnail height in pixels (> 0).
    quality:
        Thumbnail quality between 0 and 100.
    format:
        Output format of the thumbnail.
    """

    width: int | None = None
    height: int | None = None
    quality: int | None = None
    format: PreviewOutputFormat | None = None

    def __post_init__(self) -> None:
        if self.width is not None and self.width <= 0:
            raise ValueError(f"width must be > 0, got {self.width}")
        if self.height is not None and self.height <= 0:
            raise ValueError(f"height must be > 0, got {self.height}")
        if self.quality is not None and not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be in [0, 100], got {self.quality}")
        if self.format is not None and not isinstance(self.format, PreviewOutputFormat):
            # Accept plain strings such as "webp" and normalise them.
            object.__setattr__(self, "format", PreviewOutputFormat(self.format))


@dataclass(frozen=True)
class StoredFile:
    """Metadata of a stored object as reported by the server.

    Attributes
    ----------
    file_id:
        The object's id.
    bucket_id:
        The bucket holding the object.
    name:
        Original file name.
    mime_type:
        MIME type detected by the server.
    size_bytes:
        Size of the stored bytes.
    url:
        File URL built for this object.
    """

    file_id: str
    bucket_id: str
    name: str
    mime_type: str
    size_bytes: int
    url: str

    @classmethod
    def from_api(cls, data: dict[str, Any], url: str) -> StoredFile:
        """Build from the server's JSON file object."""
        return cls(
            file_id=data["$id"],
            bucket_id=data.get("bucketId", ""),
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size_bytes=int(data.get("sizeOriginal", 0)),
            url=url,
        )

    @property
    def ref(self) -> FileRef:
        return FileRef(file_id=self.file_id, bucket_id=self.bucket_id)
