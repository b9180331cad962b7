"""
Tests for the advisory document model.

Covers the append-only event log and the status/justification derived
from an event's kind and payload.
"""
from datetime import datetime, timedelta, timezone

import pytest

from advisories import Advisory, Event, EventKind, EventLog, EventOrderError
from advisories.model import format_timestamp

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def detection(ts):
    return Event(EventKind.DETECTION, ts, {"type": "manual"})


class TestEventLog:
    """Append-only history behavior."""

    def test_append_returns_new_log(self):
        log = EventLog([detection(T0)])
        longer = log.append(Event(EventKind.FIXED, T0 + timedelta(days=1), {"fixed-version": "1.0"}))

        assert len(log) == 1
        assert len(longer) == 2
        assert longer.latest.kind == EventKind.FIXED

    def test_append_rejects_equal_timestamp(self):
        log = EventLog([detection(T0)])

        with pytest.raises(EventOrderError):
            log.append(detection(T0))

    def test_append_rejects_earlier_timestamp(self):
        log = EventLog([detection(T0)])

        with pytest.raises(EventOrderError):
            log.append(detection(T0 - timedelta(seconds=1)))

    def test_constructor_enforces_order(self):
        with pytest.raises(EventOrderError):
            EventLog([detection(T0), detection(T0 - timedelta(hours=1))])

    def test_empty_log_has_no_latest(self):
        assert EventLog().latest is None

    def test_advisory_with_event_leaves_original_untouched(self):
        advisory = Advisory(id="CVE-2024-0001", events=EventLog([detection(T0)]))
        updated = advisory.with_event(detection(T0 + timedelta(minutes=1)))

        assert len(advisory.events) == 1
        assert len(updated.events) == 2


class TestEvent:
    """Event payloads and derived fields."""

    def test_payload_is_read_only(self):
        event = detection(T0)

        with pytest.raises(TypeError):
            event.data["type"] = "scan"

    def test_naive_timestamp_is_utc(self):
        event = detection(datetime(2024, 1, 1, 12, 0, 0))
        assert event.timestamp == T0

    def test_false_positive_justification_is_type(self):
        event = Event(
            EventKind.FALSE_POSITIVE_DETERMINATION,
            T0,
            {"type": "component-vulnerability-mismatch", "note": "wrong product"},
        )
        assert event.status == "not_affected"
        assert event.justification == "component-vulnerability-mismatch"

    def test_fix_not_planned_justification_is_note(self):
        event = Event(EventKind.FIX_NOT_PLANNED, T0, {"note": "EOL"})
        assert event.status == "fix_not_planned"
        assert event.justification == "EOL"

    def test_fixed_has_no_justification(self):
        event = Event(EventKind.FIXED, T0, {"fixed-version": "1.2.3-r0"})
        assert event.justification == ""

    def test_format_timestamp(self):
        assert format_timestamp(T0) == "2024-01-01T12:00:00Z"
        assert format_timestamp(T0.replace(microsecond=5)) == "2024-01-01T12:00:00.000005Z"
