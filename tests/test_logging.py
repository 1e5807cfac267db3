"""Tests for the structured logging system (recruitment_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from recruitment_kernel.exceptions import ChecklistIncompleteError, SlotAlreadyRecordedError
from recruitment_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("observation_recorded")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "observation_recorded"
        assert record["logger"] == "recruitment_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("broadcast_completed", extra={"edited": 2, "skipped": 0})

        record = _parse_log(stream)
        assert record["edited"] == 2
        assert record["skipped"] == 0

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="interaction-9", origin_id="777")
        get_logger("test").info("action_received")

        record = _parse_log(stream)
        assert record["correlation_id"] == "interaction-9"
        assert record["origin_id"] == "777"

    def test_kernel_exception_attributes_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ChecklistIncompleteError("777", 3, 5)
        except ChecklistIncompleteError:
            get_logger("test").error("finalize_rejected", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "CHECKLIST_INCOMPLETE"
        assert record["exc_type"] == "ChecklistIncompleteError"
        assert record["exc_origin_id"] == "777"
        assert record["exc_selected"] == 3
        assert record["exc_required"] == 5
        assert "traceback" in record

    def test_exception_instance_as_exc_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        exc = SlotAlreadyRecordedError("777", 2, "3001")

        get_logger("test").warning("slot_lost", exc_info=exc)

        record = _parse_log(stream)
        assert record["exc_code"] == "SLOT_ALREADY_RECORDED"
        assert record["exc_author_id"] == "3001"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "origin_id" not in record

    def test_uuid_datetime_and_set_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)

        get_logger("test").info(
            "values", extra={"token": uid, "at": moment, "keys": {"seen", "age"}}
        )

        record = _parse_log(stream)
        assert record["token"] == str(uid)
        assert record["at"] == "2024-01-01T00:00:00+00:00"
        assert record["keys"] == ["age", "seen"]

    def test_level_filtering(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_and_get(self):
        LogContext.set(correlation_id="x", action="bgcheck.finalize")
        assert LogContext.get_all() == {"correlation_id": "x", "action": "bgcheck.finalize"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_outer_value(self):
        LogContext.set(origin_id="outer")
        with LogContext.bind(origin_id="inner", actor_id="42"):
            assert LogContext.get_all() == {"origin_id": "inner", "actor_id": "42"}
        assert LogContext.get_all() == {"origin_id": "outer"}

    def test_bind_ignores_none(self):
        LogContext.set(origin_id="kept")
        with LogContext.bind(origin_id=None, action="recommend.start"):
            assert LogContext.get_all()["origin_id"] == "kept"
        assert "action" not in LogContext.get_all()

    def test_all_fields(self):
        LogContext.set(correlation_id="c", origin_id="o", actor_id="a", action="x")
        assert len(LogContext.get_all()) == 4

    def test_bind_rejects_unknown_field(self):
        with pytest.raises(TypeError):
            with LogContext.bind(slot="1"):
                pass


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("recruitment_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.broadcaster").name == (
            "recruitment_kernel.services.broadcaster"
        )

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "recruitment_kernel.deep.nested.module"
