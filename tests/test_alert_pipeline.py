"""Tests for recipient resolution and the end-to-end delivery pipeline."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future

import pytest
from sqlalchemy.exc import OperationalError

from app.application.use_cases.alerts import (
    AlertNotificationPipeline,
    mark_read,
    resolve_recipients,
)
from app.domain.entities import Alert, RecipientView
from app.domain.errors import OfflineCacheError, OrphanedAlertError
from app.infrastructure.models import (
    AlertChannelModel,
    AreaOfInterestModel,
    ProjectModel,
    SubscriptionModel,
    UserModel,
)
from app.infrastructure.notifications import (
    ConnectionRegistry,
    LiveDeliveryGateway,
)
from app.infrastructure.repositories import DisplayNameRepository


@pytest.fixture()
def seeded(database):
    with database.SessionLocal() as session:
        session.add(ProjectModel(id=1, name="Forest Watch"))
        session.flush()
        session.add(AreaOfInterestModel(project_id=1, aoi_id="aoi-1", name="North Ridge"))
        session.add(AlertChannelModel(id=3, channel_name="Fire"))
        session.flush()
        session.add(
            SubscriptionModel(
                id=10,
                project_id=1,
                aoi_id="aoi-1",
                channel_id=3,
                user_ids=["u1", "u2", "u1", ""],
                alert_dissemination_mode=["notify", "email"],
            )
        )
        session.add(UserModel(user_id="u1", username="ana", email="ana@example.com", contactno=" "))
        session.commit()
    return database


class RecordingDispatcher:
    def __init__(self) -> None:
        self.dispatched: list[tuple[str, int]] = []

    def dispatch(self, recipient: RecipientView, notification) -> list[Future]:
        self.dispatched.append((recipient.user_id, notification.alert_id))
        return []


class FlakyCache:
    """Fail the append of one user once to exercise retries."""

    def __init__(self, cache, failing_user: str) -> None:
        self._cache = cache
        self._failing_user = failing_user
        self.appends: list[str] = []

    def append(self, user_id, notification) -> None:
        if user_id == self._failing_user:
            self._failing_user = None
            raise OfflineCacheError("redis unavailable")
        self.appends.append(user_id)
        self._cache.append(user_id, notification)


def _pipeline(seeded, cache, dispatcher=None) -> tuple[AlertNotificationPipeline, ConnectionRegistry]:
    registry = ConnectionRegistry()
    gateway = LiveDeliveryGateway(registry, cache)
    return AlertNotificationPipeline(seeded.SessionLocal, cache, gateway, dispatcher), registry


def test_resolver_builds_one_notification_per_distinct_user(seeded) -> None:
    alert = Alert(id=100, subscription_id=10, content={"severity": "high"})

    with seeded.SessionLocal() as session:
        deliveries = resolve_recipients(session, alert)

    assert [delivery.user_id for delivery in deliveries] == ["u1", "u2"]
    notification = deliveries[0].notification
    assert notification.display_title == "Forest Watch: North Ridge via Fire alert"
    assert (notification.project_name, notification.aoi_name, notification.channel_name) == (
        "Forest Watch",
        "North Ridge",
        "Fire",
    )
    assert deliveries[0].recipient == RecipientView("u1", email="ana@example.com", phone=None)
    assert deliveries[1].recipient == RecipientView("u2")


def test_resolver_rejects_orphaned_alerts(seeded) -> None:
    with seeded.SessionLocal() as session:
        with pytest.raises(OrphanedAlertError):
            resolve_recipients(session, Alert(id=1, subscription_id=999))


def test_resolver_falls_back_to_identifiers_for_missing_names(seeded) -> None:
    with seeded.SessionLocal() as session:
        session.add(SubscriptionModel(id=11, project_id=1, aoi_id="aoi-9", channel_id=3, user_ids=["u3"]))
        session.commit()

        deliveries = resolve_recipients(session, Alert(id=1, subscription_id=11))

    assert deliveries[0].notification.display_title == "Forest Watch: AOI aoi-9 via Fire alert"


def test_resolver_survives_name_lookup_failures(seeded, monkeypatch) -> None:
    def broken(self, project_id):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(DisplayNameRepository, "get_project_name", broken)

    with seeded.SessionLocal() as session:
        deliveries = resolve_recipients(session, Alert(id=1, subscription_id=10))

    assert deliveries[0].notification.display_title == "Project 1: North Ridge via Fire alert"


def test_two_subscribers_then_mark_read(seeded, offline_cache) -> None:
    dispatcher = RecordingDispatcher()
    pipeline, _ = _pipeline(seeded, offline_cache, dispatcher)

    cached = pipeline.process(Alert(id=100, subscription_id=10, content={"severity": "high"}))

    assert cached == ["u1", "u2"]
    assert [n.alert_id for n in offline_cache.replay("u1")] == [100]
    assert [n.alert_id for n in offline_cache.replay("u2")] == [100]
    assert dispatcher.dispatched == [("u1", 100)]

    assert mark_read(offline_cache, "u1", "100") == 1
    assert offline_cache.replay("u1") == []
    assert [n.alert_id for n in offline_cache.replay("u2")] == [100]
    assert mark_read(offline_cache, "u1", 100) == 0


def test_cache_keeps_only_the_latest_fifty_alerts(seeded, offline_cache) -> None:
    with seeded.SessionLocal() as session:
        session.add(SubscriptionModel(id=12, project_id=1, aoi_id="aoi-1", channel_id=3, user_ids=["solo"]))
        session.commit()
    pipeline, _ = _pipeline(seeded, offline_cache)

    for alert_id in range(1, 52):
        pipeline.process(Alert(id=alert_id, subscription_id=12))

    replayed = offline_cache.replay("solo")
    assert len(replayed) == 50
    assert 1 not in {n.alert_id for n in replayed}


def test_retry_does_not_append_twice_for_completed_users(seeded, offline_cache) -> None:
    flaky = FlakyCache(offline_cache, failing_user="u2")
    pipeline, _ = _pipeline(seeded, flaky)
    alert = Alert(id=200, subscription_id=10)
    completed: set[str] = set()

    with pytest.raises(OfflineCacheError):
        pipeline.process(alert, completed=completed)
    assert completed == {"u1"}

    pipeline.process(alert, completed=completed)

    assert flaky.appends == ["u1", "u2"]
    assert len(offline_cache.replay("u1")) == 1


def test_orphaned_alert_touches_no_cache(seeded, offline_cache, fake_redis) -> None:
    pipeline, _ = _pipeline(seeded, offline_cache)

    with pytest.raises(OrphanedAlertError):
        pipeline.process(Alert(id=1, subscription_id=404))

    assert dict(fake_redis.lists) == {}


@pytest.mark.asyncio
async def test_connected_user_receives_pushed_alert(seeded, offline_cache) -> None:
    pipeline, registry = _pipeline(seeded, offline_cache)
    gateway = LiveDeliveryGateway(registry, offline_cache)
    stream = await gateway.connect("u2")

    await asyncio.to_thread(pipeline.process, Alert(id=300, subscription_id=10))
    message = await stream.next_message(1.0)

    assert message is not None
    assert message.alert_id == "300"
    assert '"displayTitle":"Forest Watch: North Ridge via Fire alert"' in message.data
