"""Map errors raised during an operation onto the closed failure taxonomy.

This is the only place where taxonomy decisions are made; every client
call site that touches the transport funnels its exceptions through
:func:`classify`.
"""

from __future__ import annotations

from bucketify.errors import (
    NoPermissionsFailure,
    RemoveFileFailure,
    ServerFailure,
    StorageApiError,
    StorageFailure,
    UpdateFileFailure,
    UploadFileFailure,
)
from bucketify.models import Operation

PERMISSION_STATUSES: frozenset[int] = frozenset({401, 403})
"""HTTP statuses classified as :class:`NoPermissionsFailure`."""

_OPERATION_FAILURES: dict[Operation, type[StorageFailure]] = {
    Operation.UPLOAD: UploadFileFailure,
    Operation.REMOVE: RemoveFileFailure,
    Operation.UPDATE: UpdateFileFailure,
    Operation.READ: ServerFailure,
}


def classify(error: BaseException, operation: Operation) -> StorageFailure:
    """Return the failure describing *error* raised while doing *operation*.

    Decision table:

    ========================================  ==========================
    condition                                 failure
    ========================================  ==========================
    already a :class:`StorageFailure`         returned unchanged
    transport error with status 401 or 403    :class:`NoPermissionsFailure`
    any other error during ``UPLOAD``         :class:`UploadFileFailure`
    any other error during ``REMOVE``         :class:`RemoveFileFailure`
    any other error during ``UPDATE``         :class:`UpdateFileFailure`
    any other error during ``READ``           :class:`ServerFailure`
    ========================================  ==========================

    Parameters
    ----------
    error:
        The exception caught at the call site.
    operation:
        The operation that was being attempted.
    """
    if isinstance(error, StorageFailure):
        return error

    context: dict[str, object] = {"operation": operation.value}
    if isinstance(error, StorageApiError):
        context["status_code"] = error.status_code
        if error.error_type:
            context["error_type"] = error.error_type
        if error.status_code in PERMISSION_STATUSES:
            return NoPermissionsFailure(error=str(error), context=context, cause=error)

    failure_cls = _OPERATION_FAILURES[operation]
    return failure_cls(error=str(error), context=context, cause=error)
