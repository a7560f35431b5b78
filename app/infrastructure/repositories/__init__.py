"""Repository implementations for infrastructure layer."""

from .display_name_repository import DisplayNameRepository
from .subscription_repository import SubscriptionRepository
from .user_repository import UserRepository

__all__ = [
    "DisplayNameRepository",
    "SubscriptionRepository",
    "UserRepository",
]
