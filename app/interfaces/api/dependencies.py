"""FastAPI dependency utilities."""

from fastapi import HTTPException, Request, status

from app.infrastructure.change_feed import ChangeFeedWorkers
from app.infrastructure.notifications import (
    ConnectionRegistry,
    LiveDeliveryGateway,
    OfflineCache,
)


def _state_attribute(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service not initialized",
        )
    return value


def get_gateway(request: Request) -> LiveDeliveryGateway:
    """Return the live delivery gateway created at startup."""

    return _state_attribute(request, "gateway")


def get_offline_cache(request: Request) -> OfflineCache:
    return _state_attribute(request, "offline_cache")


def get_registry(request: Request) -> ConnectionRegistry:
    return _state_attribute(request, "registry")


def get_change_feed_workers(request: Request) -> ChangeFeedWorkers | None:
    """Return the change feed workers, or ``None`` when the feed is disabled."""

    return getattr(request.app.state, "change_feed_workers", None)


__all__ = [
    "get_change_feed_workers",
    "get_gateway",
    "get_offline_cache",
    "get_registry",
]
