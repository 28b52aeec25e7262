"""Tests for structured logging and the metrics hook protocol."""

from __future__ import annotations

import io
import json
import logging

from bucketify.errors import RemoveFileFailure, ServerFailure
from bucketify.observability import (
    MetricsHook,
    NoopMetricsHook,
    StructuredFormatter,
    get_logger,
    log_failure,
)


def _record(msg: str = "hello", **extra_fields) -> logging.LogRecord:
    record = logging.LogRecord(
        name="bucketify.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestStructuredFormatter:
    def test_guaranteed_keys(self):
        entry = json.loads(StructuredFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "bucketify.test"
        assert entry["message"] == "hello"
        assert "ts" in entry

    def test_extra_fields_merged(self):
        entry = json.loads(StructuredFormatter().format(_record(op="create_image", file_id="a")))
        assert entry["op"] == "create_image"
        assert entry["file_id"] == "a"

    def test_non_serialisable_values_stringified(self):
        entry = json.loads(StructuredFormatter().format(_record(obj=object())))
        assert entry["obj"].startswith("<object object")

    def test_single_line(self):
        assert "\n" not in StructuredFormatter().format(_record("multi\nline"))

    def test_failure_attribute_flattened(self):
        record = _record("Error getting file", op="get_image", error="caller text")
        record.failure = ServerFailure(error="502 bad gateway")
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["failure"] == "SERVER"
        assert entry["error"] == "502 bad gateway"
        assert entry["op"] == "get_image"

    def test_no_failure_keys_without_failure(self):
        assert "failure" not in json.loads(StructuredFormatter().format(_record()))


class TestGetLogger:
    def test_idempotent(self):
        a = get_logger("bucketify.test_idempotent")
        b = get_logger("bucketify.test_idempotent")
        assert a is b
        assert len(a.handlers) == 1

    def test_string_level(self):
        log = get_logger("bucketify.test_level", level="warning")
        assert log.level == logging.WARNING

    def test_writes_json_to_stream(self):
        stream = io.StringIO()
        log = get_logger("bucketify.test_stream", stream=stream)
        log.info("done", extra={"extra_fields": {"op": "delete_image"}})
        entry = json.loads(stream.getvalue())
        assert entry["message"] == "done"
        assert entry["op"] == "delete_image"


class TestLogFailure:
    def test_fields(self):
        stream = io.StringIO()
        log = get_logger("bucketify.test_log_failure", stream=stream)
        failure = RemoveFileFailure(error="404 not found", context={"file_id": "a"})

        log_failure(log, "Error removing file: a", failure, op="delete_image", file_id="a")

        entry = json.loads(stream.getvalue())
        assert entry["level"] == "ERROR"
        assert entry["failure"] == "REMOVE_FILE"
        assert entry["failure_message"] == "Error removing file"
        assert entry["error"] == "404 not found"
        assert entry["op"] == "delete_image"
        assert entry["stack_context"]


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_noop_accepts_calls(self):
        hook = NoopMetricsHook()
        hook.increment("x", tags={"a": "b"})
        hook.timing("x", 1.5)
        hook.gauge("x", 3)

    def test_custom_backend_satisfies_protocol(self):
        class Recorder:
            def __init__(self):
                self.calls = []

            def increment(self, name, value=1, tags=None):
                self.calls.append(("increment", name, value))

            def timing(self, name, ms, tags=None):
                self.calls.append(("timing", name, ms))

            def gauge(self, name, value, tags=None):
                self.calls.append(("gauge", name, value))

        assert isinstance(Recorder(), MetricsHook)
