"""Parsing of Debezium change envelopes emitted for the alerts table."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from app.domain.entities import Alert
from app.domain.errors import MalformedChangeEventError
from app.utils import parse_change_timestamp

logger = logging.getLogger(__name__)

CREATE_OPERATION = "c"


@dataclass(frozen=True)
class ChangeEnvelope:
    """Operation type and after-image of one row change."""

    operation: str | None
    after: dict[str, Any] | None

    @property
    def is_insert(self) -> bool:
        return self.operation == CREATE_OPERATION and self.after is not None


def decode_envelope(raw: bytes | str | None) -> ChangeEnvelope:
    """Decode a message value into a :class:`ChangeEnvelope`.

    Both the ``{"schema": ..., "payload": {...}}`` form and the schema-less
    form produced with ``value.converter.schemas.enable=false`` are accepted.
    Empty values (tombstones) decode to an envelope without operation.
    """

    if raw is None or raw in (b"", ""):
        return ChangeEnvelope(operation=None, after=None)

    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedChangeEventError(f"Change event is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedChangeEventError("Change event must be a JSON object")

    payload = data.get("payload") if isinstance(data.get("payload"), dict) else data
    operation = payload.get("op")
    after = payload.get("after")
    if after is not None and not isinstance(after, dict):
        raise MalformedChangeEventError("Change event after-image must be an object")
    return ChangeEnvelope(
        operation=str(operation) if operation is not None else None, after=after
    )


def alert_from_row(row: dict[str, Any]) -> Alert:
    """Build an :class:`Alert` from an ``alerts`` row after-image."""

    try:
        alert_id = int(row["id"])
        subscription_id = int(row["subscription_id"])
    except KeyError as exc:
        raise MalformedChangeEventError(f"Alert row is missing column {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise MalformedChangeEventError(f"Alert row has an invalid identifier: {exc}") from exc

    return Alert(
        id=alert_id,
        subscription_id=subscription_id,
        content=_parse_content(row.get("content")),
        created_at=parse_change_timestamp(row.get("alert_timestamp")),
    )


def parse_alert_event(raw: bytes | str | None) -> Alert | None:
    """Return the inserted alert carried by ``raw`` or ``None`` for other changes."""

    envelope = decode_envelope(raw)
    if not envelope.is_insert:
        logger.debug("Skipping change event (op: %s)", envelope.operation)
        return None
    return alert_from_row(envelope.after or {})


def _parse_content(value: Any) -> dict[str, Any]:
    """Normalize the ``content`` column, which json/jsonb columns carry as text."""

    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return {"message": value}
        return decoded if isinstance(decoded, dict) else {"message": decoded}
    return {"message": value}


__all__ = [
    "CREATE_OPERATION",
    "ChangeEnvelope",
    "alert_from_row",
    "decode_envelope",
    "parse_alert_event",
]
