"""Failure taxonomy for the bucketify SDK.

Every failure surfaced to callers inherits from :class:`StorageFailure`.
Each carries a machine-readable ``kind`` (from :class:`FailureKind`), a
fixed human-readable ``message`` per kind, the textual description of
the underlying ``error``, an optional structured ``context`` dict, the
chained ``cause`` and a ``stack_context`` captured at construction time.

Failures are exceptions so that :meth:`bucketify.models.Result.unwrap`
can raise them and causes chain naturally, but the clients never raise
them past their public boundary: they are returned inside a
:class:`~bucketify.models.Result`.

:class:`StorageApiError` is *not* a failure.  It is the single exception
type the transport raises, and :func:`bucketify.classify.classify` maps
it onto the closed failure taxonomy.
"""

from __future__ import annotations

import traceback
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Failure kind enum
# ---------------------------------------------------------------------------

class FailureKind(str, Enum):
    """Closed set of failure kinds a client operation can return."""

    NO_PERMISSIONS = "NO_PERMISSIONS"
    NO_INTERNET_CONNECTION = "NO_INTERNET_CONNECTION"
    UPLOAD_FILE = "UPLOAD_FILE"
    REMOVE_FILE = "REMOVE_FILE"
    UPDATE_FILE = "UPDATE_FILE"
    INVALID_URL_FILE = "INVALID_URL_FILE"
    IMAGE_COMPRESSION = "IMAGE_COMPRESSION"
    FORMAT = "FORMAT"
    SERVER = "SERVER"


def _capture_stack(cause: BaseException | None) -> str:
    """Format the traceback of *cause*, or the current stack if it has none."""
    if cause is not None and cause.__traceback__ is not None:
        return "".join(
            traceback.format_exception(type(cause), cause, cause.__traceback__)
        )
    # Drop the two innermost frames (this helper and StorageFailure.__init__).
    return "".join(traceback.format_stack()[:-2])


# ---------------------------------------------------------------------------
# Base failure
# ---------------------------------------------------------------------------

class StorageFailure(Exception):
    """Base class for every failure a storage operation can return.

    Subclasses fix :attr:`kind` and :attr:`message`; callers only supply
    the underlying error description.

    Parameters
    ----------
    error:
        Description of the underlying problem (usually ``str(exc)``).
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this failure wraps another.
    """

    kind: FailureKind
    message: str

    def __init__(
        self,
        error: str = "",
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.error: str = error
        self.context: dict[str, Any] = context or {}
        self.cause: BaseException | None = cause
        self.stack_context: str = _capture_stack(cause)
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"message={self.message!r}, error={self.error!r}{ctx})"
        )


# ---------------------------------------------------------------------------
# Concrete failures
# ---------------------------------------------------------------------------

class NoPermissionsFailure(StorageFailure):
    """The server rejected the credentials (401) or the action (403)."""

    kind = FailureKind.NO_PERMISSIONS
    message = "User does not have permissions to perform the operation"


class NoInternetConnectionFailure(StorageFailure):
    """The connectivity probe could not reach the storage service."""

    kind = FailureKind.NO_INTERNET_CONNECTION
    message = "No internet connection"


class UploadFileFailure(StorageFailure):
    """Creating a file failed for any reason other than permissions."""

    kind = FailureKind.UPLOAD_FILE
    message = "Error uploading file"


class RemoveFileFailure(StorageFailure):
    """Deleting a file failed for any reason other than permissions."""

    kind = FailureKind.REMOVE_FILE
    message = "Error removing file"


class UpdateFileFailure(StorageFailure):
    """The delete-then-create sequence of an update failed.

    The stored object may be absent afterwards: update is not
    transactional.
    """

    kind = FailureKind.UPDATE_FILE
    message = "Error updating file"


class InvalidUrlFileFailure(StorageFailure):
    """A URL does not have the shape of a file URL for this endpoint.

    Context keys: ``url``, ``reason``.
    """

    kind = FailureKind.INVALID_URL_FILE
    message = "Invalid url file"


class ImageCompressionFailure(StorageFailure):
    """The image could not be decoded, transcoded or written.

    Context keys: ``source_path``, ``output_path``.
    """

    kind = FailureKind.IMAGE_COMPRESSION
    message = "Error compressing image"


class FormatFailure(StorageFailure):
    """The file extension is not an accepted image type.

    Context keys: ``path``, ``extension``.
    """

    kind = FailureKind.FORMAT
    message = "Error formatting file"


class ServerFailure(StorageFailure):
    """The server failed a read request."""

    kind = FailureKind.SERVER
    message = "Server error"


FAILURE_CLASSES: dict[FailureKind, type[StorageFailure]] = {
    cls.kind: cls
    for cls in (
        NoPermissionsFailure,
        NoInternetConnectionFailure,
        UploadFileFailure,
        RemoveFileFailure,
        UpdateFileFailure,
        InvalidUrlFileFailure,
        ImageCompressionFailure,
        FormatFailure,
        ServerFailure,
    )
}
"""Lookup from :class:`FailureKind` to its concrete failure class."""


# ---------------------------------------------------------------------------
# Transport error
# ---------------------------------------------------------------------------

class StorageApiError(Exception):
    """Raised by the transport for any unsuccessful request.

    Parameters
    ----------
    message:
        Server-supplied (or locally built) description.
    status_code:
        HTTP status code, or ``None`` when the request never produced a
        response (timeout, DNS failure, connection reset).
    error_type:
        Server-supplied machine-readable error type, if any.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str = "",
        cause: Exception | None = None,
    ) -> None:
        self.message: str = message
        self.status_code: int | None = status_code
        self.error_type: str = error_type
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return (
            f"StorageApiError(status_code={self.status_code!r}, "
            f"error_type={self.error_type!r}, message={self.message!r})"
        )
