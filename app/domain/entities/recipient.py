"""Per-alert view of a user that must be notified."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RecipientView:
    """Recipient identifier and optional contact data."""

    user_id: str
    email: str | None = None
    phone: str | None = None

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)


__all__ = ["RecipientView"]
