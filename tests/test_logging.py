"""
test_logging.py — Redaction and crisis context in both log formatters.
"""

from __future__ import annotations

import json
import logging

import pytest

from backend.app.core.logging_config import (
    JSONFormatter,
    PrettyFormatter,
    bind_crisis_context,
    get_request_context,
    mask_phone_numbers,
    record_extras,
    set_request_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    set_request_context()
    yield
    set_request_context()


def _record(msg, *args, exc=None, **extra):
    exc_info = (type(exc), exc, None) if exc else None
    record = logging.LogRecord(
        "backend.app.crisis.channels.sms_gateway", logging.INFO, __file__, 1,
        msg, args, exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMaskPhoneNumbers:

    def test_keeps_last_four_digits(self):
        assert mask_phone_numbers("+918788293663") == "+********3663"

    def test_masks_inside_text_and_prefixes(self):
        text = "[WHATSAPP] → whatsapp:+14155550123 accepted as SM0001"
        assert mask_phone_numbers(text) == (
            "[WHATSAPP] → whatsapp:+*******0123 accepted as SM0001"
        )

    def test_every_number_masked(self):
        masked = mask_phone_numbers("from +17753681889 to +918788293663")
        assert "+17753681889" not in masked
        assert "+918788293663" not in masked

    def test_leaves_other_text_alone(self):
        for text in ("", "q=21.082225,80.006333", "SM0001", "+123", "HTTP 503"):
            assert mask_phone_numbers(text) == text


class TestCrisisContext:

    def test_bind_extends_request_context(self):
        set_request_context(request_id="abc123", endpoint="/api/crisis/message")
        bind_crisis_context(requester="asha")
        bind_crisis_context(state="dispatching")
        assert get_request_context() == {
            "request_id": "abc123",
            "endpoint": "/api/crisis/message",
            "requester": "asha",
            "state": "dispatching",
        }

    def test_set_replaces_context(self):
        bind_crisis_context(requester="asha", state="done")
        set_request_context(request_id="next")
        assert get_request_context() == {"request_id": "next"}


class TestJSONFormatter:

    def test_message_and_extras_are_redacted(self):
        record = _record(
            "[SMS] → %s accepted as %s", "+918788293663", "SM0001",
            channel="sms", recipient="+918788293663",
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "[SMS] → +********3663 accepted as SM0001"
        assert entry["extra"] == {"channel": "sms", "recipient": "+********3663"}
        assert "+918788293663" not in json.dumps(entry)

    def test_context_is_included(self):
        set_request_context(request_id="abc123")
        bind_crisis_context(requester="asha", state="fallback_locating")
        entry = json.loads(JSONFormatter().format(_record("Location unavailable")))
        assert entry["context"] == {
            "request_id": "abc123",
            "requester": "asha",
            "state": "fallback_locating",
        }
        assert "extra" not in entry

    def test_exception_text_is_redacted(self):
        exc = RuntimeError("The 'To' number +14155550123 is not a valid phone number.")
        entry = json.loads(JSONFormatter().format(_record("send failed", exc=exc)))
        assert entry["exception"] == {
            "type": "RuntimeError",
            "message": "The 'To' number +*******0123 is not a valid phone number.",
        }


class TestPrettyFormatter:

    def test_redacts_and_tags_crisis_state(self):
        set_request_context(request_id="3f2a9c1e77")
        bind_crisis_context(requester="asha", state="dispatching")
        line = PrettyFormatter().format(_record("[SMS] Failed for %s", "+918788293663"))
        assert "[3f2a9c1e asha/dispatching]" in line
        assert "+********3663" in line
        assert "+918788293663" not in line

    def test_no_context_no_tag(self):
        line = PrettyFormatter().format(_record("ready"))
        assert line.endswith("\033[0m backend.app.crisis.channels.sms_gateway: ready")


class TestRecordExtras:

    def test_only_extra_keys(self):
        record = _record("x", channel="sms", duration_ms=12.5)
        assert record_extras(record) == {"channel": "sms", "duration_ms": 12.5}
