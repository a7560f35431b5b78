"""Use case acknowledging a delivered alert notification."""

import logging

from app.infrastructure.notifications import OfflineCache

logger = logging.getLogger(__name__)


def mark_read(cache: OfflineCache, user_id: str, alert_id: int | str) -> int:
    """Remove ``alert_id`` from the cached history of ``user_id``.

    Returns the number of entries removed; ``0`` means it was already
    acknowledged or evicted.
    """

    removed = cache.remove(user_id, alert_id)
    if removed == 0:
        logger.debug("Alert %s already acknowledged or evicted for user %s", alert_id, user_id)
    return removed
