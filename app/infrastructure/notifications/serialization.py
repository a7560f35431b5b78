"""Wire representation of alert notifications for streams and the cache."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from app.domain.entities import Notification
from app.utils import parse_change_timestamp


@dataclass(frozen=True)
class StreamMessage:
    """One framed message written to a live stream."""

    alert_id: str
    data: str

    def to_sse(self) -> str:
        return f"id: {self.alert_id}\ndata: {self.data}\n\n"


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON-serializable representation of ``notification``."""

    return {
        "alertId": notification.alert_id,
        "subscriptionId": notification.subscription_id,
        "projectId": notification.project_id,
        "aoiId": notification.aoi_id,
        "channelId": notification.channel_id,
        "content": notification.content or {},
        "displayTitle": notification.display_title,
        "createdAt": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "projectName": notification.project_name,
        "aoiName": notification.aoi_name,
        "channelName": notification.channel_name,
    }


def deserialize_notification(payload: dict[str, Any]) -> Notification:
    """Rebuild a :class:`Notification` from :func:`serialize_notification` output.

    Raises ``ValueError`` when a required field is missing or has the wrong type.
    """

    try:
        content = payload.get("content") or {}
        if not isinstance(content, dict):
            raise ValueError("content must be an object")
        return Notification(
            alert_id=int(payload["alertId"]),
            subscription_id=int(payload["subscriptionId"]),
            project_id=int(payload["projectId"]),
            aoi_id=str(payload["aoiId"]),
            channel_id=int(payload["channelId"]),
            display_title=str(payload["displayTitle"]),
            content=content,
            created_at=parse_change_timestamp(payload.get("createdAt")),
            project_name=payload.get("projectName"),
            aoi_name=payload.get("aoiName"),
            channel_name=payload.get("channelName"),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Invalid notification payload: {exc}") from exc


def dumps_notification(notification: Notification) -> str:
    """Serialize ``notification`` into the compact JSON string stored and streamed."""

    return json.dumps(
        serialize_notification(notification),
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def loads_notification(raw: str | bytes) -> Notification:
    """Parse a string produced by :func:`dumps_notification`."""

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid notification JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Notification JSON must be an object")
    return deserialize_notification(payload)


def to_stream_message(notification: Notification) -> StreamMessage:
    """Frame ``notification`` for delivery over a live stream."""

    return StreamMessage(
        alert_id=str(notification.alert_id), data=dumps_notification(notification)
    )


__all__ = [
    "StreamMessage",
    "deserialize_notification",
    "dumps_notification",
    "loads_notification",
    "serialize_notification",
    "to_stream_message",
]
