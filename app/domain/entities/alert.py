"""Domain entity representing a persisted alert row."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Alert:
    """Detection stored by the monitoring write path and observed through CDC."""

    id: int
    subscription_id: int
    content: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


__all__ = ["Alert"]
