"""Handle of one open server-to-client notification stream."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from collections.abc import Callable, Sequence

import anyio

from app.domain.errors import StreamClosedError

from .serialization import StreamMessage

logger = logging.getLogger(__name__)


class NotificationStream:
    """Bounded message queue bound to the event loop serving one client.

    ``write`` may be called from any thread. Until :meth:`start` runs, writes
    are buffered so that the cached history reaches the client first.
    """

    def __init__(
        self,
        user_id: str,
        loop: asyncio.AbstractEventLoop,
        *,
        max_queue_size: int = 100,
        on_overflow: Callable[["NotificationStream"], None] | None = None,
    ) -> None:
        self.user_id = user_id
        self._loop = loop
        self._queue: asyncio.Queue[StreamMessage | None] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._backlog: deque[StreamMessage] = deque()
        self._pending: list[StreamMessage] = []
        self._lock = threading.RLock()
        self._replaying = True
        self._closed = False
        self._on_overflow = on_overflow

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, message: StreamMessage) -> None:
        """Queue ``message`` for the client, raising if the stream is gone."""

        with self._lock:
            if self._closed:
                raise StreamClosedError(f"Stream for user {self.user_id} is closed")
            if self._replaying:
                self._pending.append(message)
                return
            try:
                self._loop.call_soon_threadsafe(self._enqueue, message)
            except RuntimeError as exc:
                self._closed = True
                raise StreamClosedError(
                    f"Event loop of the stream for user {self.user_id} is closed"
                ) from exc

    def start(self, replay: Sequence[StreamMessage]) -> None:
        """Write the cached history, then release writes buffered meanwhile.

        Must run on the stream's event loop. Buffered messages already part of
        ``replay`` are not written twice.
        """

        with self._lock:
            self._backlog.extend(replay)
            replayed = {message.alert_id for message in replay}
            pending = [m for m in self._pending if m.alert_id not in replayed]
            self._pending.clear()
            self._replaying = False
            for message in pending:
                self._enqueue(message)

    def close(self) -> None:
        """Mark the stream closed and wake up a reader waiting on it."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._pending.clear()
        try:
            self._loop.call_soon_threadsafe(self._wake)
        except RuntimeError:
            # Loop already stopped, no reader is left to wake.
            return

    async def next_message(self, timeout: float) -> StreamMessage | None:
        """Return the next message, or ``None`` after ``timeout`` idle seconds."""

        if self._backlog:
            return self._backlog.popleft()
        if self._closed:
            return None
        with anyio.move_on_after(timeout):
            return await self._queue.get()
        return None

    def _enqueue(self, message: StreamMessage) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Stream for user %s is not keeping up; dropping the connection",
                self.user_id,
            )
            self.close()
            if self._on_overflow is not None:
                self._on_overflow(self)

    def _wake(self) -> None:
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass


__all__ = ["NotificationStream"]
