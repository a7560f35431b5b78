"""Use cases of the alert notification pipeline."""

from .mark_read import mark_read
from .process_alert import AlertNotificationPipeline
from .resolve_recipients import Delivery, RecipientResolver, resolve_recipients

__all__ = [
    "AlertNotificationPipeline",
    "Delivery",
    "RecipientResolver",
    "mark_read",
    "resolve_recipients",
]
