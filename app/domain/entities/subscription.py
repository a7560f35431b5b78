"""Domain entity binding an AOI and an alert channel to recipient users."""

from __future__ import annotations

from dataclasses import dataclass, field

SUBSCRIPTION_STATUS_INACTIVE = 0
SUBSCRIPTION_STATUS_ACTIVE = 1
SUBSCRIPTION_STATUS_DELETED = 2


@dataclass(frozen=True)
class Subscription:
    """Standing rule resolved once per alert."""

    id: int
    project_id: int
    aoi_id: str
    channel_id: int
    user_ids: tuple[str, ...] = ()
    dissemination_modes: tuple[str, ...] = ("notify",)
    status: int = SUBSCRIPTION_STATUS_ACTIVE

    def recipient_ids(self) -> list[str]:
        """Return the subscribed user ids without blanks or duplicates, in order."""

        unique: list[str] = []
        for user_id in self.user_ids:
            if user_id and user_id not in unique:
                unique.append(user_id)
        return unique


@dataclass(frozen=True)
class DisplayNames:
    """Human readable labels of the entities referenced by a subscription."""

    project_name: str
    aoi_name: str
    channel_name: str

    @property
    def title(self) -> str:
        return f"{self.project_name}: {self.aoi_name} via {self.channel_name} alert"


__all__ = [
    "DisplayNames",
    "Subscription",
    "SUBSCRIPTION_STATUS_ACTIVE",
    "SUBSCRIPTION_STATUS_DELETED",
    "SUBSCRIPTION_STATUS_INACTIVE",
]
