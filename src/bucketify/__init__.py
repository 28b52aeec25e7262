"""bucketify: typed client for image files in a remote storage bucket.

Public re-exports
-----------------

* **Clients:** :class:`StorageClient`, :class:`AsyncStorageClient`
* **Configuration:** :class:`BucketifyConfig`
* **Failures:** Every :class:`StorageFailure` subclass and :class:`FailureKind`
* **Models:** :class:`Result`, request/response dataclasses and enums
* **Localization:** :func:`failure_text`

Usage::

    from bucketify import StorageClient, failure_text

    client = StorageClient(project_id="app", bucket_id="avatars")
    result = client.create_image("user-42", "/tmp/avatar.heic")
    if result.is_success:
        print(result.value)
    else:
        print(failure_text(result.failure, "es"))
"""

from __future__ import annotations

from bucketify.async_client import AsyncStorageClient

# ── Clients ────────────────────────────────────────────────────────────
from bucketify.client import StorageClient

# ── Configuration ───────────────────────────────────────────────────────
from bucketify.config import BucketifyConfig

# ── Failures ────────────────────────────────────────────────────────────
from bucketify.errors import (
    FAILURE_CLASSES,
    FailureKind,
    FormatFailure,
    ImageCompressionFailure,
    InvalidUrlFileFailure,
    NoInternetConnectionFailure,
    NoPermissionsFailure,
    RemoveFileFailure,
    ServerFailure,
    StorageApiError,
    StorageFailure,
    UpdateFileFailure,
    UploadFileFailure,
)

# ── Localization ────────────────────────────────────────────────────────
from bucketify.localization import SUPPORTED_LOCALES, failure_text

# ── Models ──────────────────────────────────────────────────────────────
from bucketify.models import (
    FileRef,
    Operation,
    OperationState,
    PreviewOptions,
    PreviewOutputFormat,
    Result,
    StoredFile,
    UploadImageParams,
    UploadRequest,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "StorageClient",
    "AsyncStorageClient",
    # Configuration
    "BucketifyConfig",
    # Failure base + kind enum
    "StorageFailure",
    "FailureKind",
    "FAILURE_CLASSES",
    # Failures
    "NoPermissionsFailure",
    "NoInternetConnectionFailure",
    "UploadFileFailure",
    "RemoveFileFailure",
    "UpdateFileFailure",
    "InvalidUrlFileFailure",
    "ImageCompressionFailure",
    "FormatFailure",
    "ServerFailure",
    # Transport error
    "StorageApiError",
    # Localization
    "failure_text",
    "SUPPORTED_LOCALES",
    # Models: result types
    "Result",
    "StoredFile",
    "FileRef",
    # Models: requests
    "UploadRequest",
    "UploadImageParams",
    "PreviewOptions",
    # Models: enums
    "PreviewOutputFormat",
    "Operation",
    "OperationState",
]
