"""Tests for live streams, the connection registry and the delivery gateway."""

from __future__ import annotations

import asyncio
import threading

import pytest

from app.domain.errors import StreamClosedError
from app.infrastructure.notifications import (
    ConnectionRegistry,
    LiveDeliveryGateway,
    NotificationStream,
    to_stream_message,
)

from conftest import build_notification


async def _drain(stream: NotificationStream, timeout: float = 0.05) -> list[str]:
    alert_ids: list[str] = []
    while True:
        message = await stream.next_message(timeout)
        if message is None:
            return alert_ids
        alert_ids.append(message.alert_id)


@pytest.mark.asyncio
async def test_stream_buffers_writes_until_history_is_written() -> None:
    stream = NotificationStream("u1", asyncio.get_running_loop())
    stream.write(to_stream_message(build_notification(3)))

    stream.start([to_stream_message(build_notification(2)), to_stream_message(build_notification(1))])
    await asyncio.sleep(0)

    assert await _drain(stream) == ["2", "1", "3"]


@pytest.mark.asyncio
async def test_stream_skips_buffered_writes_already_in_history() -> None:
    stream = NotificationStream("u1", asyncio.get_running_loop())
    stream.write(to_stream_message(build_notification(2)))

    stream.start([to_stream_message(build_notification(2))])
    await asyncio.sleep(0)

    assert await _drain(stream) == ["2"]


@pytest.mark.asyncio
async def test_stream_accepts_writes_from_other_threads() -> None:
    stream = NotificationStream("u1", asyncio.get_running_loop())
    stream.start([])

    writer = threading.Thread(target=stream.write, args=(to_stream_message(build_notification(4)),))
    writer.start()
    writer.join()

    message = await stream.next_message(1.0)

    assert message is not None
    assert message.to_sse().startswith("id: 4\ndata: {")
    assert message.to_sse().endswith("\n\n")


@pytest.mark.asyncio
async def test_closed_stream_rejects_writes_and_wakes_reader() -> None:
    stream = NotificationStream("u1", asyncio.get_running_loop())
    stream.start([])
    reader = asyncio.create_task(stream.next_message(5.0))
    await asyncio.sleep(0)

    stream.close()

    assert await asyncio.wait_for(reader, 1.0) is None
    assert stream.closed
    with pytest.raises(StreamClosedError):
        stream.write(to_stream_message(build_notification(1)))


@pytest.mark.asyncio
async def test_stream_overflow_closes_it_and_reports() -> None:
    dropped: list[NotificationStream] = []
    stream = NotificationStream(
        "u1", asyncio.get_running_loop(), max_queue_size=1, on_overflow=dropped.append
    )
    stream.start([])

    stream.write(to_stream_message(build_notification(1)))
    stream.write(to_stream_message(build_notification(2)))
    await asyncio.sleep(0)

    assert stream.closed
    assert dropped == [stream]


@pytest.mark.asyncio
async def test_registry_fans_out_to_every_stream_of_a_user() -> None:
    loop = asyncio.get_running_loop()
    registry = ConnectionRegistry()
    tabs = [NotificationStream("u1", loop) for _ in range(3)]
    other = NotificationStream("u2", loop)
    for stream in tabs:
        stream.start([])
        registry.add("u1", stream)
    other.start([])
    registry.add("u2", other)

    delivered = registry.push("u1", to_stream_message(build_notification(8)))
    await asyncio.sleep(0)

    assert delivered == 3
    for stream in tabs:
        assert await _drain(stream) == ["8"]
    assert await _drain(other) == []


@pytest.mark.asyncio
async def test_registry_drops_closed_streams_without_affecting_others() -> None:
    loop = asyncio.get_running_loop()
    registry = ConnectionRegistry()
    alive = NotificationStream("u1", loop)
    dead = NotificationStream("u1", loop)
    for stream in (alive, dead):
        stream.start([])
        registry.add("u1", stream)
    dead.close()

    delivered = registry.push("u1", to_stream_message(build_notification(1)))
    await asyncio.sleep(0)

    assert delivered == 1
    assert registry.streams_for("u1") == [alive]
    assert await _drain(alive) == ["1"]


def test_registry_push_to_offline_user_is_a_no_op() -> None:
    registry = ConnectionRegistry()

    assert registry.push("nobody", to_stream_message(build_notification(1))) == 0
    assert registry.connection_count() == 0


@pytest.mark.asyncio
async def test_registry_remove_and_close_all() -> None:
    loop = asyncio.get_running_loop()
    registry = ConnectionRegistry()
    first = NotificationStream("u1", loop)
    second = NotificationStream("u2", loop)
    registry.add("u1", first)
    registry.add("u2", second)

    assert registry.remove("u1", first) is True
    assert registry.remove("u1", first) is False
    assert registry.connection_count("u1") == 0
    assert registry.connection_count() == 1

    registry.close_all()

    assert second.closed
    assert registry.connection_count() == 0


@pytest.mark.asyncio
async def test_gateway_replays_history_before_live_pushes(offline_cache) -> None:
    registry = ConnectionRegistry()
    gateway = LiveDeliveryGateway(registry, offline_cache)
    offline_cache.append("u1", build_notification(1))
    offline_cache.append("u1", build_notification(2))

    stream = await gateway.connect("u1")
    gateway.push("u1", build_notification(3))
    await asyncio.sleep(0)

    assert await _drain(stream) == ["2", "1", "3"]
    assert registry.connection_count("u1") == 1


@pytest.mark.asyncio
async def test_gateway_serves_each_tab_the_full_history(offline_cache) -> None:
    gateway = LiveDeliveryGateway(ConnectionRegistry(), offline_cache)
    offline_cache.append("u1", build_notification(1))

    first = await gateway.connect("u1")
    second = await gateway.connect("u1")

    assert await _drain(first) == ["1"]
    assert await _drain(second) == ["1"]


@pytest.mark.asyncio
async def test_gateway_disconnect_keeps_other_tabs(offline_cache) -> None:
    registry = ConnectionRegistry()
    gateway = LiveDeliveryGateway(registry, offline_cache)
    first = await gateway.connect("u1")
    second = await gateway.connect("u1")

    gateway.disconnect("u1", first)
    gateway.push("u1", build_notification(5))
    await asyncio.sleep(0)

    assert first.closed
    assert await _drain(second) == ["5"]


@pytest.mark.asyncio
async def test_gateway_connects_with_empty_history_when_cache_fails(offline_cache, fake_redis) -> None:
    gateway = LiveDeliveryGateway(ConnectionRegistry(), offline_cache)
    fake_redis.fail = True

    stream = await gateway.connect("u1")
    gateway.push("u1", build_notification(1))
    await asyncio.sleep(0)

    assert await _drain(stream) == ["1"]


@pytest.mark.asyncio
async def test_gateway_releases_stream_when_replay_fails_unexpectedly(offline_cache, monkeypatch) -> None:
    registry = ConnectionRegistry()
    gateway = LiveDeliveryGateway(registry, offline_cache)

    def broken_replay(user_id):
        raise RuntimeError("decoder crashed")

    monkeypatch.setattr(offline_cache, "replay", broken_replay)

    with pytest.raises(RuntimeError):
        await gateway.connect("u1")

    assert registry.connection_count("u1") == 0

