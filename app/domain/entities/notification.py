"""Domain entity representing an alert notification addressed to a user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

@dataclass(frozen=True)
class Notification:
    """Display-ready representation of an alert for one recipient."""

    alert_id: int
    subscription_id: int
    project_id: int
    aoi_id: str
    channel_id: int
    display_title: str
    content: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    project_name: str | None = None
    aoi_name: str | None = None
    channel_name: str | None = None


__all__ = ["Notification"]
