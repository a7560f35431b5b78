"""Pydantic models describing alert delivery payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MarkReadRequest(BaseModel):
    """Payload used to acknowledge one delivered alert."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("userId", "user_id"),
    )
    alert_id: int | str = Field(
        ...,
        validation_alias=AliasChoices("alertId", "notificationId", "alert_id"),
        description="Identifier of the alert; ``notificationId`` is accepted for older clients",
    )


class MarkReadResponse(BaseModel):
    success: bool
    removed: int


class ServiceStatusRead(BaseModel):
    """Liveness summary of the notification service."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    open_streams: int = Field(..., serialization_alias="openStreams")
    running_consumers: int = Field(..., serialization_alias="runningConsumers")


__all__ = ["MarkReadRequest", "MarkReadResponse", "ServiceStatusRead"]
