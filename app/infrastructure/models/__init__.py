"""ORM models used by the application infrastructure."""

from .alert_channel import AlertChannelModel
from .area_of_interest import AreaOfInterestModel
from .project import ProjectModel
from .subscription import SubscriptionModel
from .user import UserModel

__all__ = [
    "AlertChannelModel",
    "AreaOfInterestModel",
    "ProjectModel",
    "SubscriptionModel",
    "UserModel",
]
