"""English (``en``) failure messages."""

from __future__ import annotations

from bucketify.errors import FailureKind

MESSAGES: dict[FailureKind, str] = {
    FailureKind.NO_PERMISSIONS: (
        "You do not have permissions to access this resource. "
        "If the problem persists, please contact your system administrator"
    ),
    FailureKind.NO_INTERNET_CONNECTION: (
        "No internet connection. Please check your connection and try again"
    ),
    FailureKind.UPLOAD_FILE: "Failed to upload file. Please try again later",
    FailureKind.REMOVE_FILE: "Failed to remove file. Please try again later",
    FailureKind.UPDATE_FILE: "Failed to update file. Please try again later",
    FailureKind.INVALID_URL_FILE: "Invalid URL",
    FailureKind.IMAGE_COMPRESSION: "The image could not be processed. Please try another image",
    FailureKind.FORMAT: "File format not supported. Please use a JPG, PNG, WEBP or HEIC image",
    FailureKind.SERVER: (
        "A server error has occurred. "
        "If the problem persists, please contact your system administrator"
    ),
}
