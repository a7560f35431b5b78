"""SQLAlchemy model for the catalogue of alert channels."""

from sqlalchemy import Column, Integer, String

from app.infrastructure.database import Base


class AlertChannelModel(Base):
    """Predefined alert channel an AOI can be subscribed to."""

    __tablename__ = "alert_channel_catalogue"

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, nullable=True)
    script_name = Column(String(255), nullable=True)
    channel_name = Column(String(255), nullable=False)
    category = Column(String(120), nullable=True)


__all__ = ["AlertChannelModel"]
