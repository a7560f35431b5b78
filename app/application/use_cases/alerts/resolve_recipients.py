"""Use case expanding an alert into the notifications of its recipients."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import (
    Alert,
    DisplayNames,
    Notification,
    RecipientView,
    Subscription,
)
from app.domain.errors import OrphanedAlertError
from app.infrastructure.repositories import (
    DisplayNameRepository,
    SubscriptionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """Notification addressed to one recipient."""

    recipient: RecipientView
    notification: Notification

    @property
    def user_id(self) -> str:
        return self.recipient.user_id


class RecipientResolver:
    """Resolve who must hear about an alert and how it is labelled.

    Only the subscription lookup is mandatory. Names fall back to raw
    identifiers and missing contact data only limits delivery to in-app.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._subscriptions = SubscriptionRepository(session)
        self._names = DisplayNameRepository(session)
        self._users = UserRepository(session)

    def resolve(self, alert: Alert) -> list[Delivery]:
        subscription = self._subscriptions.get(alert.subscription_id)
        if subscription is None:
            raise OrphanedAlertError(alert.id, alert.subscription_id)

        user_ids = subscription.recipient_ids()
        if not user_ids:
            logger.info(
                "Subscription %s has no recipients; alert %s not delivered",
                subscription.id,
                alert.id,
            )
            return []

        names = self._display_names(subscription)
        contacts = self._contacts(user_ids)
        return [
            Delivery(
                recipient=contacts.get(user_id) or RecipientView(user_id=user_id),
                notification=_build_notification(alert, subscription, names),
            )
            for user_id in user_ids
        ]

    def _display_names(self, subscription: Subscription) -> DisplayNames:
        return DisplayNames(
            project_name=self._lookup_name(
                lambda: self._names.get_project_name(subscription.project_id),
                f"Project {subscription.project_id}",
            ),
            aoi_name=self._lookup_name(
                lambda: self._names.get_aoi_name(subscription.project_id, subscription.aoi_id),
                f"AOI {subscription.aoi_id}",
            ),
            channel_name=self._lookup_name(
                lambda: self._names.get_channel_name(subscription.channel_id),
                f"Channel {subscription.channel_id}",
            ),
        )

    def _lookup_name(self, lookup: Callable[[], str | None], fallback: str) -> str:
        try:
            return lookup() or fallback
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Name lookup failed, using '%s': %s", fallback, exc)
            return fallback

    def _contacts(self, user_ids: list[str]) -> dict[str, RecipientView]:
        try:
            contacts = self._users.get_contacts_by_ids(user_ids)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Contact lookup failed; delivering in-app only: %s", exc)
            return {}

        missing = [user_id for user_id in user_ids if user_id not in contacts]
        if missing:
            logger.debug("No user record for %s; delivering in-app only", missing)
        return contacts


def _build_notification(
    alert: Alert, subscription: Subscription, names: DisplayNames
) -> Notification:
    return Notification(
        alert_id=alert.id,
        subscription_id=subscription.id,
        project_id=subscription.project_id,
        aoi_id=subscription.aoi_id,
        channel_id=subscription.channel_id,
        display_title=names.title,
        content=dict(alert.content),
        created_at=alert.created_at,
        project_name=names.project_name,
        aoi_name=names.aoi_name,
        channel_name=names.channel_name,
    )


def resolve_recipients(session: Session, alert: Alert) -> list[Delivery]:
    """Return one :class:`Delivery` per recipient of ``alert``."""

    return RecipientResolver(session).resolve(alert)


__all__ = ["Delivery", "RecipientResolver", "resolve_recipients"]
