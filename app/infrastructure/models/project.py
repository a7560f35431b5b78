"""SQLAlchemy model for the monitoring project table."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.infrastructure.database import Base


class ProjectModel(Base):
    """Database representation of a monitoring project."""

    __tablename__ = "project"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by_userid = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=True, server_default=func.now())


__all__ = ["ProjectModel"]
