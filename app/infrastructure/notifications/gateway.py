"""Live delivery of alert notifications over long-lived client streams."""

from __future__ import annotations

import asyncio
import logging

from anyio import to_thread

from app.domain.entities import Notification
from app.domain.errors import OfflineCacheError

from .offline_cache import OfflineCache
from .registry import ConnectionRegistry
from .serialization import to_stream_message
from .stream import NotificationStream

logger = logging.getLogger(__name__)


class LiveDeliveryGateway:
    """Open, feed and close the push streams of connected clients."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        cache: OfflineCache,
        *,
        max_queue_size: int = 100,
    ) -> None:
        self.registry = registry
        self._cache = cache
        self._max_queue_size = max_queue_size

    async def connect(self, user_id: str) -> NotificationStream:
        """Register a stream for ``user_id`` and load it with the cached history.

        The stream is registered before the history is read so that no push
        is lost in between; pushes received meanwhile are written after the
        history.
        """

        stream = NotificationStream(
            user_id,
            asyncio.get_running_loop(),
            max_queue_size=self._max_queue_size,
            on_overflow=lambda dropped: self.registry.remove(user_id, dropped),
        )
        self.registry.add(user_id, stream)

        try:
            try:
                history = await to_thread.run_sync(self._cache.replay, user_id)
            except OfflineCacheError:
                logger.exception("Could not replay cached alerts for user %s", user_id)
                history = []
            stream.start([to_stream_message(notification) for notification in history])
        except BaseException:
            # The caller never receives the handle.
            self.disconnect(user_id, stream)
            raise

        logger.info("Replayed %s cached alerts to a new stream of user %s", len(history), user_id)
        return stream

    def disconnect(self, user_id: str, stream: NotificationStream) -> None:
        """Forget ``stream``; other streams of the same user stay open."""

        self.registry.remove(user_id, stream)
        stream.close()

    def push(self, user_id: str, notification: Notification) -> int:
        """Send ``notification`` to every open stream of ``user_id``."""

        return self.registry.push(user_id, to_stream_message(notification))


__all__ = ["LiveDeliveryGateway"]
