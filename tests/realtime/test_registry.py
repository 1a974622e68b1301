"""Tests for the in-process connection registry."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from numina_social.realtime.channel import Channel
from numina_social.realtime.events import ErrorEvent
from numina_social.schemas.messaging import MessageOut


def _message(recipient_conversation: str = "c1") -> MessageOut:
    return MessageOut(
        id="m1",
        conversation_id=recipient_conversation,
        sender_id=1,
        content="See you at the track",
        sent_at=datetime(2026, 5, 1, 7, 30, tzinfo=UTC),
    )


def test_fake_channel_satisfies_protocol(make_channel):
    assert isinstance(make_channel(), Channel)


@pytest.mark.asyncio
async def test_connect_registers_and_announces_to_others(registry, make_channel):
    first, second = make_channel(), make_channel()

    await registry.connect(1, first)
    await registry.connect(2, second)

    assert registry.is_user_online(1)
    assert registry.is_user_online(2)
    assert registry.connection_count() == 2
    assert sorted(registry.online_user_ids()) == [1, 2]

    announcements = first.events_of("user_online_status")
    assert announcements == [
        {"type": "user_online_status", "user_id": 2, "online": True, "last_seen": None}
    ]
    assert second.events_of("user_online_status") == []


@pytest.mark.asyncio
async def test_reconnect_replaces_previous_channel(registry, make_channel):
    old, new = make_channel(), make_channel()
    await registry.connect(1, old)
    await registry.connect(1, new)

    assert registry.connection_count() == 1
    assert await registry.send_error(1, "hello", "TEST") is True
    assert old.sent == []
    assert new.events_of("error") == [{"type": "error", "message": "hello", "code": "TEST"}]
    assert old.closed is False


@pytest.mark.asyncio
async def test_stale_disconnect_keeps_replacement(registry, make_channel):
    old, new = make_channel(), make_channel()
    await registry.connect(1, old)
    await registry.connect(1, new)

    assert await registry.disconnect(1, old) is False
    assert registry.is_user_online(1)

    assert await registry.disconnect(1, new) is True
    assert not registry.is_user_online(1)


@pytest.mark.asyncio
async def test_disconnect_announces_offline_with_last_seen(registry, make_channel):
    watcher, leaver = make_channel(), make_channel()
    await registry.connect(1, watcher)
    await registry.connect(2, leaver)

    assert await registry.disconnect(2) is True
    assert await registry.disconnect(2) is False

    offline = [e for e in watcher.events_of("user_online_status") if not e["online"]]
    assert len(offline) == 1
    assert offline[0]["user_id"] == 2
    assert offline[0]["last_seen"] is not None


@pytest.mark.asyncio
async def test_send_to_absent_user_is_noop(registry):
    assert await registry.notify_new_message(99, _message()) is False


@pytest.mark.asyncio
async def test_send_skips_closed_channel(registry, make_channel):
    channel = make_channel()
    await registry.connect(1, channel)
    channel.closed = True

    assert await registry.notify_new_message(1, _message()) is False
    assert channel.sent == []


@pytest.mark.asyncio
async def test_send_failure_drops_channel_without_raising(registry, make_channel):
    watcher, broken = make_channel(), make_channel(fail=True)
    await registry.connect(1, watcher)
    await registry.connect(2, broken)

    assert await registry.notify_new_message(2, _message()) is False

    assert not registry.is_user_online(2)
    offline = [e for e in watcher.events_of("user_online_status") if not e["online"]]
    assert [e["user_id"] for e in offline] == [2]


@pytest.mark.asyncio
async def test_broadcast_continues_past_failing_channel(registry, make_channel):
    healthy_a, broken, healthy_b = make_channel(), make_channel(), make_channel()
    await registry.connect(1, healthy_a)
    await registry.connect(2, broken)
    await registry.connect(3, healthy_b)
    broken.fail = True

    delivered = await registry.broadcast(ErrorEvent(message="maintenance", code="NOTICE"))

    assert delivered == 2
    assert healthy_a.events_of("error") and healthy_b.events_of("error")
    assert not registry.is_user_online(2)
    assert registry.connection_count() == 2


@pytest.mark.asyncio
async def test_broadcast_excludes_user(registry, make_channel):
    first, second = make_channel(), make_channel()
    await registry.connect(1, first)
    await registry.connect(2, second)

    delivered = await registry.broadcast(ErrorEvent(message="x", code="Y"), exclude=1)

    assert delivered == 1
    assert first.events_of("error") == []


@pytest.mark.asyncio
async def test_event_helpers_address_the_right_user(registry, make_channel):
    sender, recipient = make_channel(), make_channel()
    await registry.connect(1, sender)
    await registry.connect(2, recipient)
    now = datetime(2026, 5, 1, 8, 0, tzinfo=UTC)

    await registry.notify_new_message(2, _message())
    await registry.notify_message_delivered(1, "m1", "c1", now)
    await registry.notify_message_read(1, "m1", "c1", now)
    await registry.send_typing_indicator("c1", 1, 2, True)

    assert [e["type"] for e in recipient.events()] == ["new_message", "typing_indicator"]
    assert [e["type"] for e in sender.events() if e["type"] != "user_online_status"] == [
        "message_delivered",
        "message_read",
    ]
    typing = recipient.events_of("typing_indicator")[0]
    assert typing == {"type": "typing_indicator", "conversation_id": "c1", "user_id": 1, "typing": True}


@pytest.mark.asyncio
async def test_shutdown_closes_all_channels(registry, make_channel):
    first, second = make_channel(), make_channel()
    await registry.connect(1, first)
    await registry.connect(2, second)

    await registry.shutdown()

    assert registry.connection_count() == 0
    assert first.closed and second.closed
    assert first.close_code == 1001


@pytest.mark.asyncio
async def test_concurrent_sessions_for_one_user_leave_single_entry(registry, make_channel):
    sessions = [make_channel() for _ in range(4)]

    await asyncio.gather(*(registry.connect(1, channel) for channel in sessions))

    assert registry.connection_count() == 1
    winner = sessions[-1]
    assert await registry.send_error(1, "latest wins", "INVALID_EVENT") is True
    assert [event["message"] for event in winner.events_of("error")] == ["latest wins"]
    fresh = make_channel()
    results = await asyncio.gather(
        *(registry.disconnect(1, channel) for channel in sessions[:-1]),
        registry.connect(1, fresh),
        registry.disconnect(1, winner),
    )

    assert results[:-2] == [False, False, False]
    assert results[-1] is False
    assert registry.connection_count() == 1
    assert await registry.send_error(1, "still yours", "INVALID_EVENT") is True
    assert fresh.events_of("error") == [
        {"type": "error", "message": "still yours", "code": "INVALID_EVENT"}
    ]
    assert all(not channel.events_of("error") for channel in sessions[:-1])
    assert len(winner.events_of("error")) == 1
