"""Shared fixtures for the alert notification tests."""

from __future__ import annotations

import os
import sys
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure the project root (which contains the ``app`` package) is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

TEST_DB_PATH = Path(__file__).parent / "test_alerts.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["CHANGE_FEED_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from redis.exceptions import ConnectionError as RedisConnectionError

from app.domain.entities import Notification


class FakePipeline:
    """Queue commands and run them against :class:`FakeRedis` on ``execute``."""

    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._commands: list[tuple[str, tuple]] = []

    def __enter__(self) -> "FakePipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self._commands.clear()

    def lpush(self, key, *values):
        self._commands.append(("lpush", (key, *values)))
        return self

    def ltrim(self, key, start, end):
        self._commands.append(("ltrim", (key, start, end)))
        return self

    def lrem(self, key, count, value):
        self._commands.append(("lrem", (key, count, value)))
        return self

    def execute(self):
        self._redis._check()
        results = [getattr(self._redis, name)(*args) for name, args in self._commands]
        self._commands.clear()
        return results


class FakeRedis:
    """In-memory stand-in for the list commands used by the offline cache."""

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = defaultdict(list)
        self.fail = False
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def lpush(self, key, *values) -> int:
        self._check()
        for value in values:
            self.lists[key].insert(0, value)
        return len(self.lists[key])

    def ltrim(self, key, start, end) -> bool:
        self._check()
        items = self.lists[key]
        stop = len(items) if end == -1 else end + 1
        self.lists[key] = items[start:stop]
        return True

    def lrange(self, key, start, end) -> list[str]:
        self._check()
        items = self.lists.get(key, [])
        stop = len(items) if end == -1 else end + 1
        return list(items[start:stop])

    def lrem(self, key, count, value) -> int:
        self._check()
        items = self.lists.get(key, [])
        kept = [item for item in items if item != value]
        removed = len(items) - len(kept)
        self.lists[key] = kept
        return removed

    def close(self) -> None:
        self.closed = True


def build_notification(alert_id: int = 1, **overrides) -> Notification:
    values = {
        "alert_id": alert_id,
        "subscription_id": 10,
        "project_id": 7,
        "aoi_id": "aoi-1",
        "channel_id": 3,
        "display_title": "Forest Watch: North Ridge via Fire alert",
        "content": {"severity": "high"},
        "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        "project_name": "Forest Watch",
        "aoi_name": "North Ridge",
        "channel_name": "Fire",
    }
    values.update(overrides)
    return Notification(**values)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def offline_cache(fake_redis: FakeRedis):
    from app.infrastructure.notifications import OfflineCache

    return OfflineCache(fake_redis, depth=50)


@pytest.fixture()
def database():
    """Provide a clean SQLite schema and remove it afterwards."""

    from app.infrastructure import database as database_module

    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)
    database_module.initialize_database()
    yield database_module
    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)


@pytest.fixture(scope="session", autouse=True)
def _remove_test_database():
    yield
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()
