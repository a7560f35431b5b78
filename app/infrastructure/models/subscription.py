"""SQLAlchemy model for AOI channel subscriptions."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects import postgresql

from app.infrastructure.database import Base

# PostgreSQL stores the lists as text[]; other backends (tests) fall back to JSON.
_StringList = JSON().with_variant(postgresql.ARRAY(String), "postgresql")


class SubscriptionModel(Base):
    """Database representation of a subscription of users to an AOI channel."""

    __tablename__ = "subscription"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("project.id"), nullable=False, index=True)
    aoi_id = Column(String(64), nullable=False)
    channel_id = Column(
        Integer, ForeignKey("alert_channel_catalogue.id"), nullable=False
    )
    user_ids = Column(_StringList, nullable=False, default=list)
    alert_dissemination_mode = Column(
        _StringList, nullable=False, default=lambda: ["notify"]
    )
    auxdata = Column(JSON, nullable=True)
    status = Column(Integer, nullable=False, default=1)
    last_modified = Column(DateTime, nullable=True, onupdate=func.now())


__all__ = ["SubscriptionModel"]
