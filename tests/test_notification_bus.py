"""NotificationBus registry, authentication and fan-out."""

import asyncio
import json

import pytest

from unilink.domain.value_objects.user_id import UserId
from unilink.infrastructure.realtime.channel import (
    ChannelState,
    IdentityAlreadyBoundError,
)
from unilink.infrastructure.realtime.notification_bus import (
    CLOSE_AUTH_TIMEOUT,
    CLOSE_GOING_AWAY,
    CLOSE_TOO_MANY_PENDING,
    CLOSE_WRITE_FAILED,
    NotificationBus,
)

from tests.fakes import FakeTransport, eventually, new_message_event

ALICE = UserId("alice")
BOB = UserId("bob")


@pytest.fixture
async def bus():
    bus = NotificationBus(auth_timeout=5, max_unauthenticated=10, send_buffer_size=10)
    yield bus
    await bus.close()


def auth_frame(user_id: str, **extra) -> str:
    return json.dumps({"type": "auth", "userId": user_id, **extra})


async def connect(bus, user_id=None, transport=None):
    transport = transport or FakeTransport()
    channel = await bus.register_channel(transport)
    if user_id is not None:
        await bus.handle_incoming(channel, auth_frame(user_id))
    return channel, transport


# =============================================================================
# Registration and identity binding
# =============================================================================


async def test_new_channel_is_unauthenticated(bus):
    channel, _ = await connect(bus)

    assert channel.state is ChannelState.UNAUTHENTICATED
    assert channel.user_id is None
    assert bus.channel_count == 1
    assert bus.unauthenticated_count == 1
    assert bus.get_channel(channel.id) is channel


async def test_auth_frame_binds_channel_to_user(bus):
    channel, _ = await connect(bus, "alice")

    assert channel.state is ChannelState.AUTHENTICATED
    assert channel.user_id == ALICE
    assert bus.channels_for(ALICE) == {channel}
    assert bus.unauthenticated_count == 0
    assert bus.connected_users() == {ALICE}


async def test_second_auth_frame_is_ignored(bus):
    channel, transport = await connect(bus, "alice")

    await bus.handle_incoming(channel, auth_frame("mallory"))

    assert channel.user_id == ALICE
    assert bus.channels_for(UserId("mallory")) == frozenset()
    assert channel.is_open
    assert transport.closed is None


async def test_channel_identity_is_write_once(bus):
    channel, _ = await connect(bus, "alice")

    with pytest.raises(IdentityAlreadyBoundError):
        channel.bind(BOB)


async def test_identity_verifier_rejects_auth_without_valid_token():
    bus = NotificationBus(
        auth_timeout=5,
        max_unauthenticated=10,
        send_buffer_size=10,
        identity_verifier=lambda user_id, token: token == f"token-for-{user_id}",
    )
    try:
        channel, transport = await connect(bus)

        await bus.handle_incoming(channel, auth_frame("alice"))
        await bus.handle_incoming(channel, auth_frame("alice", token="token-for-bob"))
        assert channel.state is ChannelState.UNAUTHENTICATED

        await bus.handle_incoming(channel, auth_frame("alice", token="token-for-alice"))
        assert channel.user_id == ALICE
        assert transport.closed is None
    finally:
        await bus.close()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"auth_timeout": 0},
        {"max_unauthenticated": 0},
        {"send_buffer_size": 0},
    ],
)
def test_bus_rejects_non_positive_limits(kwargs):
    with pytest.raises(ValueError):
        NotificationBus(**kwargs)


# =============================================================================
# Deregistration (no leaks)
# =============================================================================


async def test_deregister_removes_channel_from_every_index(bus):
    for _ in range(5):
        channel, _ = await connect(bus, "alice")
        await bus.deregister_channel(channel)

        assert channel.state is ChannelState.CLOSED
        assert channel not in bus.channels_for(ALICE)
        assert bus.get_channel(channel.id) is None

    assert bus.channel_count == 0
    assert bus.connected_users() == set()


async def test_deregister_is_idempotent(bus):
    channel, _ = await connect(bus, "alice")

    await bus.deregister_channel(channel)
    await bus.deregister_channel(channel)

    assert bus.channel_count == 0


async def test_closing_one_tab_keeps_the_other(bus):
    first, _ = await connect(bus, "alice")
    second, _ = await connect(bus, "alice")

    await bus.deregister_channel(first)

    assert bus.channels_for(ALICE) == {second}


async def test_frames_on_closed_channel_are_ignored(bus):
    channel, _ = await connect(bus)
    await bus.deregister_channel(channel)

    await bus.handle_incoming(channel, auth_frame("alice"))

    assert channel.user_id is None
    assert bus.channels_for(ALICE) == frozenset()


async def test_close_shuts_every_channel(bus):
    _, pending = await connect(bus)
    _, bound = await connect(bus, "alice")

    await bus.close()

    assert bus.channel_count == 0
    assert pending.closed[0] == CLOSE_GOING_AWAY
    assert bound.closed[0] == CLOSE_GOING_AWAY


# =============================================================================
# Fan-out
# =============================================================================


async def test_broadcast_reaches_every_session_of_the_target_only(bus):
    bob_channels = [await connect(bus, "bob") for _ in range(3)]
    alice_channel, alice_transport = await connect(bus, "alice")
    _, pending_transport = await connect(bus)

    delivered = await bus.broadcast(BOB, new_message_event("Hello Bob"))
    for channel, _ in bob_channels:
        await channel.flush()
    await alice_channel.flush()

    assert delivered == 3
    for _, transport in bob_channels:
        assert len(transport.frames) == 1
        assert transport.frames[0]["type"] == "new_message"
        assert transport.frames[0]["data"]["content"] == "Hello Bob"
    assert alice_transport.sent == []
    assert pending_transport.sent == []


async def test_broadcast_to_offline_user_is_a_no_op(bus):
    await connect(bus, "alice")

    assert await bus.broadcast(UserId("carol"), new_message_event(receiver="carol")) == 0


async def test_frames_arrive_in_broadcast_order(bus):
    channel, transport = await connect(bus, "bob")

    for i in range(8):
        await bus.broadcast(BOB, new_message_event(f"message {i}"))
    await channel.flush()

    assert [frame["data"]["content"] for frame in transport.frames] == [
        f"message {i}" for i in range(8)
    ]


# =============================================================================
# Authentication deadline and pending cap
# =============================================================================


async def test_channel_without_auth_is_closed_after_timeout():
    bus = NotificationBus(auth_timeout=0.05, max_unauthenticated=10, send_buffer_size=10)
    try:
        channel, transport = await connect(bus)
        await bus.broadcast(ALICE, new_message_event(receiver="alice"))

        await eventually(lambda: transport.closed is not None)

        assert transport.closed[0] == CLOSE_AUTH_TIMEOUT
        assert transport.sent == []
        assert channel.state is ChannelState.CLOSED
        assert bus.channel_count == 0
    finally:
        await bus.close()


async def test_authenticated_channel_survives_the_deadline():
    bus = NotificationBus(auth_timeout=0.05, max_unauthenticated=10, send_buffer_size=10)
    try:
        channel, transport = await connect(bus, "alice")

        await asyncio.sleep(0.15)

        assert channel.is_authenticated
        assert transport.closed is None
    finally:
        await bus.close()


async def test_oldest_pending_channel_is_evicted_at_the_cap():
    bus = NotificationBus(auth_timeout=5, max_unauthenticated=2, send_buffer_size=10)
    try:
        await connect(bus, "alice")  # authenticated channels do not count
        oldest, oldest_transport = await connect(bus)
        await connect(bus)
        newest, _ = await connect(bus)

        assert oldest_transport.closed[0] == CLOSE_TOO_MANY_PENDING
        assert bus.get_channel(oldest.id) is None
        assert bus.get_channel(newest.id) is newest
        assert bus.unauthenticated_count == 2
        assert bus.channel_count == 3
    finally:
        await bus.close()


# =============================================================================
# Malformed input and failing peers
# =============================================================================


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        '{"userId": "alice"}',
        '{"type": 7}',
        '{"type": "auth"}',
        '{"type": "auth", "userId": "   "}',
        b"{",
    ],
)
async def test_malformed_frame_does_not_close_channel(bus, raw):
    channel, transport = await connect(bus, "bob")
    other, other_transport = await connect(bus, "bob")

    await bus.handle_incoming(channel, raw)
    await bus.broadcast(BOB, new_message_event())
    await channel.flush()
    await other.flush()

    assert channel.is_authenticated
    assert transport.closed is None
    assert len(transport.sent) == 1
    assert len(other_transport.sent) == 1


async def test_padded_user_id_does_not_bind(bus):
    channel, transport = await connect(bus, " bob ")

    delivered = await bus.broadcast(BOB, new_message_event())

    assert channel.state is ChannelState.UNAUTHENTICATED
    assert delivered == 0
    assert bus.channels_for(BOB) == frozenset()
    assert transport.closed is None


async def test_unknown_frame_type_is_ignored(bus):
    channel, transport = await connect(bus)

    await bus.handle_incoming(channel, '{"type": "typing", "to": "bob"}')

    assert channel.state is ChannelState.UNAUTHENTICATED
    assert transport.closed is None


async def test_write_failure_closes_only_the_failing_channel(bus):
    broken, broken_transport = await connect(bus, "bob", FakeTransport(fail_sends=True))
    healthy, healthy_transport = await connect(bus, "bob")

    await bus.broadcast(BOB, new_message_event())
    await healthy.flush()
    await eventually(lambda: broken_transport.closed is not None)

    assert broken_transport.closed[0] == CLOSE_WRITE_FAILED
    assert broken.state is ChannelState.CLOSED
    assert bus.channels_for(BOB) == {healthy}
    assert len(healthy_transport.frames) == 1


async def test_full_send_buffer_drops_frames_but_keeps_channel():
    bus = NotificationBus(auth_timeout=5, max_unauthenticated=10, send_buffer_size=2)
    try:
        transport = FakeTransport()
        transport.gate = asyncio.Event()
        channel, _ = await connect(bus, "bob", transport)

        results = [await bus.broadcast(BOB, new_message_event(f"m{i}")) for i in range(4)]

        assert results == [1, 1, 0, 0]
        assert channel.dropped_frames == 2
        assert channel.is_authenticated

        transport.gate.set()
        await channel.flush()
        assert [frame["data"]["content"] for frame in transport.frames] == ["m0", "m1"]
    finally:
        await bus.close()
