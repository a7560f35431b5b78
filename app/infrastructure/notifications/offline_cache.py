"""Bounded per-user history of alert notifications stored in Redis."""

from __future__ import annotations

import json
import logging

import redis
from redis.exceptions import RedisError

from app.config import Settings
from app.domain.entities import Notification
from app.domain.errors import OfflineCacheError

from .serialization import dumps_notification, loads_notification

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DEPTH = 50


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build the Redis client used by :class:`OfflineCache`."""

    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
        socket_keepalive=True,
        retry_on_timeout=True,
        health_check_interval=30,
    )


class OfflineCache:
    """Newest-first list of serialized notifications per user, capped at ``depth``.

    Each user owns one Redis list (``{prefix}:{user_id}``). Every operation is
    a single command or a MULTI/EXEC block, so concurrent appends from the
    consumer and removals from acknowledgments never interleave on a key.
    Entries pushed past ``depth`` are discarded for good.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        depth: int = DEFAULT_CACHE_DEPTH,
        key_prefix: str = "alerts",
    ) -> None:
        if depth < 1:
            raise ValueError("Cache depth must be a positive integer")
        self._client = client
        self.depth = depth
        self._key_prefix = key_prefix

    def key_for(self, user_id: str) -> str:
        return f"{self._key_prefix}:{user_id}"

    def append(self, user_id: str, notification: Notification) -> None:
        """Prepend ``notification`` and evict everything beyond the cap."""

        key = self.key_for(user_id)
        payload = dumps_notification(notification)
        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.lpush(key, payload)
                pipe.ltrim(key, 0, self.depth - 1)
                pipe.execute()
        except RedisError as exc:
            raise OfflineCacheError(
                f"Could not cache alert {notification.alert_id} for user {user_id}"
            ) from exc

    def replay(self, user_id: str) -> list[Notification]:
        """Return the cached notifications of ``user_id``, newest first."""

        notifications: list[Notification] = []
        for raw in self._read(user_id):
            try:
                notifications.append(loads_notification(raw))
            except ValueError as exc:
                logger.warning("Skipping unreadable cache entry for user %s: %s", user_id, exc)
        return notifications

    def remove(self, user_id: str, alert_id: int | str) -> int:
        """Remove every entry produced for ``alert_id``; return how many were removed."""

        key = self.key_for(user_id)
        target = str(alert_id)
        matches = {raw for raw in self._read(user_id) if _entry_alert_id(raw) == target}
        if not matches:
            return 0

        try:
            with self._client.pipeline(transaction=True) as pipe:
                for raw in matches:
                    pipe.lrem(key, 0, raw)
                removed = sum(int(count) for count in pipe.execute())
        except RedisError as exc:
            raise OfflineCacheError(
                f"Could not remove alert {alert_id} for user {user_id}"
            ) from exc

        logger.debug(
            "Removed %s cached entries of alert %s for user %s", removed, alert_id, user_id
        )
        return removed

    def _read(self, user_id: str) -> list[str]:
        try:
            return list(self._client.lrange(self.key_for(user_id), 0, -1))
        except RedisError as exc:
            raise OfflineCacheError(f"Could not read cached alerts for user {user_id}") from exc


def _entry_alert_id(raw: str) -> str | None:
    """Return the alert id of a raw cache entry, tolerating older entry shapes."""

    try:
        payload = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    alert_id = payload.get("alertId", payload.get("id"))
    return None if alert_id is None else str(alert_id)


__all__ = ["DEFAULT_CACHE_DEPTH", "OfflineCache", "create_redis_client"]
