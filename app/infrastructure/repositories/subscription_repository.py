"""Read access to subscriptions for the notification pipeline."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import Subscription
from app.infrastructure.models import SubscriptionModel


class SubscriptionRepository:
    """Resolve :class:`Subscription` entities from the relational store."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, subscription_id: int) -> Subscription | None:
        model = self.session.get(SubscriptionModel, subscription_id)
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: SubscriptionModel) -> Subscription:
        return Subscription(
            id=model.id,
            project_id=model.project_id,
            aoi_id=str(model.aoi_id),
            channel_id=model.channel_id,
            user_ids=tuple(str(user_id) for user_id in (model.user_ids or [])),
            dissemination_modes=tuple(model.alert_dissemination_mode or ("notify",)),
            status=model.status,
        )


__all__ = ["SubscriptionRepository"]
