"""Errors raised while turning alert rows into delivered notifications."""

from __future__ import annotations


class AlertPipelineError(Exception):
    """Base class for failures inside the notification pipeline."""


class TransientPipelineError(AlertPipelineError):
    """Infrastructure failure that may succeed when the event is retried."""


class OfflineCacheError(TransientPipelineError):
    """The offline notification cache could not be reached in time."""


class MalformedChangeEventError(AlertPipelineError):
    """A change event could not be parsed into an alert."""


class OrphanedAlertError(AlertPipelineError):
    """The alert references a subscription that does not exist."""

    def __init__(self, alert_id: int, subscription_id: int) -> None:
        super().__init__(
            f"Alert {alert_id} references unknown subscription {subscription_id}"
        )
        self.alert_id = alert_id
        self.subscription_id = subscription_id


class StreamClosedError(AlertPipelineError):
    """A write was attempted on a live stream that can no longer accept data."""


__all__ = [
    "AlertPipelineError",
    "MalformedChangeEventError",
    "OfflineCacheError",
    "OrphanedAlertError",
    "StreamClosedError",
    "TransientPipelineError",
]
