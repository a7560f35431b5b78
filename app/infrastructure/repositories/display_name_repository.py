"""Lookups of the labels shown next to an alert notification."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.infrastructure.models import (
    AlertChannelModel,
    AreaOfInterestModel,
    ProjectModel,
)


class DisplayNameRepository:
    """Return project, AOI and channel names, or ``None`` when unknown."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_project_name(self, project_id: int) -> str | None:
        name = (
            self.session.query(ProjectModel.name)
            .filter(ProjectModel.id == project_id)
            .scalar()
        )
        return name or None

    def get_aoi_name(self, project_id: int, aoi_id: str) -> str | None:
        name = (
            self.session.query(AreaOfInterestModel.name)
            .filter(AreaOfInterestModel.project_id == project_id)
            .filter(AreaOfInterestModel.aoi_id == aoi_id)
            .scalar()
        )
        return name or None

    def get_channel_name(self, channel_id: int) -> str | None:
        name = (
            self.session.query(AlertChannelModel.channel_name)
            .filter(AlertChannelModel.id == channel_id)
            .scalar()
        )
        return name or None


__all__ = ["DisplayNameRepository"]
