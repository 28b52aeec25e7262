"""Tests for the failure classifier."""

from __future__ import annotations

import pytest

from bucketify.classify import classify
from bucketify.errors import (
    FormatFailure,
    NoPermissionsFailure,
    RemoveFileFailure,
    ServerFailure,
    StorageApiError,
    UpdateFileFailure,
    UploadFileFailure,
)
from bucketify.models import Operation


class TestClassify:
    @pytest.mark.parametrize("status", [401, 403])
    @pytest.mark.parametrize("operation", list(Operation))
    def test_permission_statuses(self, status, operation):
        failure = classify(StorageApiError("denied", status_code=status), operation)
        assert isinstance(failure, NoPermissionsFailure)
        assert failure.context["status_code"] == status
        assert failure.context["operation"] == operation.value

    @pytest.mark.parametrize(
        "operation,expected",
        [
            (Operation.UPLOAD, UploadFileFailure),
            (Operation.REMOVE, RemoveFileFailure),
            (Operation.UPDATE, UpdateFileFailure),
            (Operation.READ, ServerFailure),
        ],
    )
    def test_other_api_errors_by_operation(self, operation, expected):
        err = StorageApiError("boom", status_code=500, error_type="general_unknown")
        failure = classify(err, operation)
        assert type(failure) is expected
        assert failure.cause is err
        assert failure.error == "boom"
        assert failure.context["error_type"] == "general_unknown"

    def test_network_error_is_not_permissions(self):
        failure = classify(StorageApiError("net", status_code=None), Operation.UPLOAD)
        assert isinstance(failure, UploadFileFailure)
        assert failure.context["status_code"] is None

    def test_404_on_remove(self):
        err = StorageApiError("missing", status_code=404)
        assert isinstance(classify(err, Operation.REMOVE), RemoveFileFailure)

    def test_arbitrary_exception(self):
        failure = classify(OSError("disk"), Operation.UPDATE)
        assert isinstance(failure, UpdateFileFailure)
        assert "status_code" not in failure.context

    def test_existing_failure_passes_through(self):
        original = FormatFailure(error="bad ext")
        assert classify(original, Operation.UPLOAD) is original
