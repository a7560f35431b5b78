"""SQLAlchemy model for areas of interest owned by a project."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from app.infrastructure.database import Base


class AreaOfInterestModel(Base):
    """Area of interest; ``aoi_id`` is unique only within its project."""

    __tablename__ = "area_of_interest"
    __table_args__ = (UniqueConstraint("project_id", "aoi_id"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("project.id"), nullable=False, index=True)
    aoi_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False, default="")
    status = Column(Integer, nullable=False, default=1)


__all__ = ["AreaOfInterestModel"]
