"""Consumption of the alerts change-data-capture feed."""

from .consumer import (
    TRANSIENT_ERRORS,
    ChangeEventConsumer,
    ChangeFeedWorkers,
    build_consumer_config,
)
from .envelope import (
    CREATE_OPERATION,
    ChangeEnvelope,
    alert_from_row,
    decode_envelope,
    parse_alert_event,
)

__all__ = [
    "CREATE_OPERATION",
    "ChangeEnvelope",
    "ChangeEventConsumer",
    "ChangeFeedWorkers",
    "TRANSIENT_ERRORS",
    "alert_from_row",
    "build_consumer_config",
    "decode_envelope",
    "parse_alert_event",
]
