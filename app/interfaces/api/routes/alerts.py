"""Endpoints streaming alert notifications and managing their history."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from anyio import to_thread
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from app.application.use_cases.alerts import mark_read
from app.config import Settings, get_settings
from app.domain.errors import OfflineCacheError
from app.infrastructure.notifications import (
    LiveDeliveryGateway,
    OfflineCache,
    serialize_notification,
)
from app.interfaces.api.dependencies import get_gateway, get_offline_cache
from app.interfaces.api.schemas import MarkReadRequest, MarkReadResponse

router = APIRouter(prefix="/api/alerts", tags=["alerts"])
logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keep-alive\n\n"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def stream_events(
    request: Request,
    gateway: LiveDeliveryGateway,
    user_id: str,
    *,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """Open a stream for ``user_id`` and yield its SSE frames until either side goes away.

    The stream is registered and released in this one scope, also when the
    client leaves before the first frame.
    """

    stream = await gateway.connect(user_id)
    try:
        while True:
            message = await stream.next_message(keepalive_seconds)
            if message is not None:
                yield message.to_sse()
                continue
            if stream.closed or await request.is_disconnected():
                break
            yield KEEPALIVE_FRAME
    finally:
        gateway.disconnect(user_id, stream)
        logger.info("Stream of user %s closed", user_id)


@router.get("/events/{user_id}")
async def alert_events(
    user_id: str,
    request: Request,
    gateway: LiveDeliveryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Open a server-sent event stream carrying the alerts of ``user_id``.

    Cached alerts not yet acknowledged are written first, then live ones.
    """

    return StreamingResponse(
        stream_events(
            request,
            gateway,
            user_id,
            keepalive_seconds=settings.stream_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/mark-read", response_model=MarkReadResponse)
async def mark_alert_read(
    payload: MarkReadRequest,
    cache: OfflineCache = Depends(get_offline_cache),
) -> MarkReadResponse:
    """Remove an acknowledged alert from the cached history of a user."""

    try:
        removed = await to_thread.run_sync(mark_read, cache, payload.user_id, payload.alert_id)
    except OfflineCacheError as exc:
        logger.error("Could not mark alert %s as read: %s", payload.alert_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Alert cache unavailable",
        ) from exc
    return MarkReadResponse(success=True, removed=removed)


@router.get("/history/{user_id}")
async def alert_history(
    user_id: str,
    cache: OfflineCache = Depends(get_offline_cache),
) -> list[dict[str, Any]]:
    """Return the cached, unacknowledged alerts of ``user_id``, newest first."""

    try:
        history = await to_thread.run_sync(cache.replay, user_id)
    except OfflineCacheError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Alert cache unavailable",
        ) from exc
    return [serialize_notification(notification) for notification in history]
