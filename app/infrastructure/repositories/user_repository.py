"""Persistence layer for user contact data."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import RecipientView
from app.infrastructure.models import UserModel


class UserRepository:
    """Provide read access to users addressed by alert notifications."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_contacts_by_ids(self, user_ids: Sequence[str]) -> dict[str, RecipientView]:
        """Return the contact view of every existing user in ``user_ids``."""

        if not user_ids:
            return {}

        unique_ids = {str(user_id) for user_id in user_ids}
        query = self.session.query(UserModel).filter(UserModel.user_id.in_(unique_ids))
        return {model.user_id: self._to_entity(model) for model in query.all()}

    @staticmethod
    def _to_entity(model: UserModel) -> RecipientView:
        return RecipientView(
            user_id=model.user_id,
            email=(model.email or "").strip() or None,
            phone=(model.contactno or "").strip() or None,
        )


__all__ = ["UserRepository"]
