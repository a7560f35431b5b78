"""Aggregate application use cases."""

from .alerts import AlertNotificationPipeline, mark_read, resolve_recipients

__all__ = [
    "AlertNotificationPipeline",
    "mark_read",
    "resolve_recipients",
]
