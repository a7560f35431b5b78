"""Domain entities exposed by the application."""

from .alert import Alert
from .notification import Notification
from .recipient import RecipientView
from .subscription import (
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_DELETED,
    SUBSCRIPTION_STATUS_INACTIVE,
    DisplayNames,
    Subscription,
)

__all__ = [
    "Alert",
    "DisplayNames",
    "Notification",
    "RecipientView",
    "Subscription",
    "SUBSCRIPTION_STATUS_ACTIVE",
    "SUBSCRIPTION_STATUS_DELETED",
    "SUBSCRIPTION_STATUS_INACTIVE",
]
