"""Use case delivering a newly inserted alert to its recipients."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from app.domain.entities import Alert
from app.infrastructure.notifications import (
    LiveDeliveryGateway,
    OfflineCache,
    OutOfBandDispatcher,
)

from .resolve_recipients import resolve_recipients

logger = logging.getLogger(__name__)


class AlertNotificationPipeline:
    """Resolve recipients, cache, push live and trigger email/SMS for an alert."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache: OfflineCache,
        gateway: LiveDeliveryGateway,
        out_of_band: OutOfBandDispatcher | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._gateway = gateway
        self._out_of_band = out_of_band

    def process(self, alert: Alert, *, completed: set[str] | None = None) -> list[str]:
        """Deliver ``alert`` and return the ids of the users it was cached for.

        ``completed`` carries the users already handled by an earlier attempt
        for the same alert; they are skipped and the set is updated in place.
        Cache failures propagate so the caller can retry the event.
        """

        completed = completed if completed is not None else set()
        with self._session_factory() as session:
            deliveries = resolve_recipients(session, alert)

        cached: list[str] = []
        for delivery in deliveries:
            user_id = delivery.user_id
            if user_id in completed:
                continue

            self._cache.append(user_id, delivery.notification)
            completed.add(user_id)
            cached.append(user_id)

            self._gateway.push(user_id, delivery.notification)
            if self._out_of_band is not None and delivery.recipient.has_contact:
                self._out_of_band.dispatch(delivery.recipient, delivery.notification)

        logger.info(
            "Alert %s of subscription %s delivered to %s recipients",
            alert.id,
            alert.subscription_id,
            len(cached),
        )
        return cached


__all__ = ["AlertNotificationPipeline"]
