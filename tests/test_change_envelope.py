"""Tests for decoding Debezium change events of the alerts table."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from app.domain.errors import MalformedChangeEventError
from app.infrastructure.change_feed import decode_envelope, parse_alert_event


def _event(op: str, after: dict | None, *, wrapped: bool = True) -> bytes:
    payload = {"op": op, "before": None, "after": after, "source": {"table": "alerts"}}
    body = {"schema": {}, "payload": payload} if wrapped else payload
    return json.dumps(body).encode()


def test_insert_event_yields_alert() -> None:
    raw = _event(
        "c",
        {
            "id": 42,
            "subscription_id": 7,
            "content": json.dumps({"severity": "high"}),
            "alert_timestamp": 1714564800000000,
        },
    )

    alert = parse_alert_event(raw)

    assert alert is not None
    assert alert.id == 42
    assert alert.subscription_id == 7
    assert alert.content == {"severity": "high"}
    assert alert.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_schemaless_event_is_accepted() -> None:
    raw = _event("c", {"id": "5", "subscription_id": "2", "content": {"a": 1}}, wrapped=False)

    alert = parse_alert_event(raw)

    assert alert is not None
    assert (alert.id, alert.subscription_id, alert.content) == (5, 2, {"a": 1})


@pytest.mark.parametrize("op", ["u", "d", "r"])
def test_non_insert_operations_are_ignored(op: str) -> None:
    assert parse_alert_event(_event(op, {"id": 1, "subscription_id": 1})) is None


@pytest.mark.parametrize("raw", [None, b""])
def test_tombstones_are_ignored(raw) -> None:
    assert decode_envelope(raw).operation is None
    assert parse_alert_event(raw) is None


def test_plain_text_content_is_wrapped() -> None:
    alert = parse_alert_event(
        _event("c", {"id": 1, "subscription_id": 1, "content": "fire detected"})
    )

    assert alert is not None
    assert alert.content == {"message": "fire detected"}


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        _event("c", {"subscription_id": 1}),
        _event("c", {"id": "abc", "subscription_id": 1}),
    ],
)
def test_malformed_events_raise(raw: bytes) -> None:
    with pytest.raises(MalformedChangeEventError):
        parse_alert_event(raw)
