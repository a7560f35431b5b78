"""Registry of the live notification streams grouped by user."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import DefaultDict, Set

from app.domain.errors import StreamClosedError

from .serialization import StreamMessage
from .stream import NotificationStream

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Track open streams per user and multicast messages to them.

    Streams are added and removed from request handlers while the consumer
    workers push from their own threads, so every access goes through a lock
    and pushes iterate over a snapshot.
    """

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[NotificationStream]] = defaultdict(set)
        self._lock = threading.Lock()

    def add(self, user_id: str, stream: NotificationStream) -> None:
        """Register ``stream`` for ``user_id``."""

        with self._lock:
            self._connections[user_id].add(stream)
            total = len(self._connections[user_id])
        logger.info("Stream opened for user %s (%s open)", user_id, total)

    def remove(self, user_id: str, stream: NotificationStream) -> bool:
        """Remove ``stream`` from the pool for ``user_id``.

        Returns ``False`` when the stream was not registered.
        """

        with self._lock:
            connections = self._connections.get(user_id)
            if connections is None or stream not in connections:
                return False
            connections.discard(stream)
            if not connections:
                self._connections.pop(user_id, None)
        logger.info("Stream closed for user %s", user_id)
        return True

    def streams_for(self, user_id: str) -> list[NotificationStream]:
        with self._lock:
            return list(self._connections.get(user_id, ()))

    def push(self, user_id: str, message: StreamMessage) -> int:
        """Write ``message`` to every open stream of ``user_id``.

        Returns the number of streams written. A stream that fails is dropped
        from the registry without affecting the others.
        """

        streams = self.streams_for(user_id)
        if not streams:
            logger.debug(
                "User %s is offline; alert %s kept in cache only", user_id, message.alert_id
            )
            return 0

        delivered = 0
        for stream in streams:
            try:
                stream.write(message)
            except StreamClosedError as exc:
                logger.warning("Dropping stream for user %s: %s", user_id, exc)
                self.remove(user_id, stream)
            else:
                delivered += 1
        logger.debug(
            "Alert %s pushed to %s of %s streams for user %s",
            message.alert_id,
            delivered,
            len(streams),
            user_id,
        )
        return delivered

    def connection_count(self, user_id: str | None = None) -> int:
        """Return the open streams of ``user_id``, or of every user when omitted."""

        with self._lock:
            if user_id is not None:
                return len(self._connections.get(user_id, ()))
            return sum(len(streams) for streams in self._connections.values())

    def close_all(self) -> None:
        """Close every registered stream, used on application shutdown."""

        with self._lock:
            streams = [stream for group in self._connections.values() for stream in group]
            self._connections.clear()
        for stream in streams:
            stream.close()


__all__ = ["ConnectionRegistry"]
