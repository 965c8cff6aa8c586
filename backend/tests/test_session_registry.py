import pytest

from phone_bridge.services.signaling import (
    CHANNEL_CLOSED,
    EventChannel,
    InvalidSubscriptionError,
    PeerNotFoundError,
    Role,
    SessionNotFoundError,
    SessionRegistry,
    subscription,
)


def channel(session_id: str, role: Role, max_pending: int = 0) -> EventChannel:
    return EventChannel(session_id, role, max_pending=max_pending)


def test_roles_are_opposites():
    assert Role.RECEIVER.peer is Role.SENDER
    assert Role.SENDER.peer is Role.RECEIVER
    assert Role.parse("sender") is Role.SENDER

    with pytest.raises(InvalidSubscriptionError):
        Role.parse("viewer")
    with pytest.raises(InvalidSubscriptionError):
        Role.parse(None)


def test_register_creates_session_and_unregister_removes_it(registry):
    receiver = channel("abc", Role.RECEIVER)

    assert registry.register("abc", Role.RECEIVER, receiver) is None
    assert registry.has_session("abc")
    assert registry.get_channel("abc", Role.RECEIVER) is receiver

    assert registry.unregister("abc", Role.RECEIVER, receiver) is True
    assert not registry.has_session("abc")
    assert registry.active_session_count() == 0


def test_session_survives_until_last_role_leaves(registry):
    receiver = channel("abc", Role.RECEIVER)
    sender = channel("abc", Role.SENDER)
    registry.register("abc", Role.RECEIVER, receiver)
    registry.register("abc", Role.SENDER, sender)
    assert registry.total_streams() == 2

    registry.unregister("abc", Role.RECEIVER, receiver)
    assert registry.has_session("abc")
    assert registry.get_session_roles("abc") == [Role.SENDER]

    registry.unregister("abc", Role.SENDER, sender)
    assert not registry.has_session("abc")


def test_lookup_peer_returns_opposite_role(registry):
    receiver = channel("abc", Role.RECEIVER)
    registry.register("abc", Role.RECEIVER, receiver)

    assert registry.lookup_peer("abc", Role.RECEIVER) is None
    assert registry.lookup_peer("abc", Role.SENDER) is receiver
    assert registry.lookup_peer("missing", Role.SENDER) is None


def test_stale_unregister_keeps_newer_subscription(registry):
    old = channel("abc", Role.SENDER)
    new = channel("abc", Role.SENDER)
    registry.register("abc", Role.SENDER, old)

    assert registry.register("abc", Role.SENDER, new) is old

    assert registry.unregister("abc", Role.SENDER, old) is False
    assert registry.get_channel("abc", Role.SENDER) is new
    assert registry.has_session("abc")


def test_unregister_unknown_session_is_noop(registry):
    assert registry.unregister("nobody", Role.RECEIVER, channel("nobody", Role.RECEIVER)) is False
    assert registry.active_session_count() == 0


def test_relay_errors(registry):
    with pytest.raises(SessionNotFoundError) as exc_info:
        registry.relay("ghost", Role.SENDER, {"type": "offer"})
    assert str(exc_info.value) == "session not found"

    registry.register("abc", Role.SENDER, channel("abc", Role.SENDER))
    with pytest.raises(PeerNotFoundError) as exc_info:
        registry.relay("abc", Role.SENDER, {"type": "offer"})
    assert str(exc_info.value) == "peer not found"


@pytest.mark.asyncio
async def test_relay_delivers_in_order(registry):
    receiver = channel("abc", Role.RECEIVER)
    registry.register("abc", Role.RECEIVER, receiver)
    registry.register("abc", Role.SENDER, channel("abc", Role.SENDER))

    for i in range(50):
        registry.relay("abc", Role.SENDER, {"type": "candidate", "n": i})

    received = [await receiver.receive() for _ in range(50)]
    assert [m["n"] for m in received] == list(range(50))


def test_relay_to_closed_channel_drops_peer(registry):
    receiver = channel("abc", Role.RECEIVER)
    sender = channel("abc", Role.SENDER)
    registry.register("abc", Role.RECEIVER, receiver)
    registry.register("abc", Role.SENDER, sender)
    receiver.close()

    with pytest.raises(PeerNotFoundError):
        registry.relay("abc", Role.SENDER, {"type": "offer"})

    assert registry.get_channel("abc", Role.RECEIVER) is None
    assert registry.get_channel("abc", Role.SENDER) is sender


def test_relay_to_saturated_channel_drops_and_closes_peer(registry):
    receiver = channel("abc", Role.RECEIVER, max_pending=2)
    registry.register("abc", Role.RECEIVER, receiver)
    registry.register("abc", Role.SENDER, channel("abc", Role.SENDER))

    registry.relay("abc", Role.SENDER, {"n": 1})
    registry.relay("abc", Role.SENDER, {"n": 2})
    with pytest.raises(PeerNotFoundError):
        registry.relay("abc", Role.SENDER, {"n": 3})

    assert receiver.closed
    assert registry.get_session_roles("abc") == [Role.SENDER]


def test_deliver_refused_drops_only_the_current_holder(registry):
    old = channel("abc", Role.SENDER)
    current = channel("abc", Role.SENDER, max_pending=1)
    registry.register("abc", Role.SENDER, old)
    registry.register("abc", Role.SENDER, current)
    old.close()

    # Displaced channel: closed, slot untouched
    assert registry.deliver("abc", Role.SENDER, old, {"type": "superseded"}) is False
    assert registry.get_channel("abc", Role.SENDER) is current

    assert registry.deliver("abc", Role.SENDER, current, {"n": 1}) is True
    assert registry.deliver("abc", Role.SENDER, current, {"n": 2}) is False
    assert current.closed
    assert not registry.has_session("abc")


@pytest.mark.asyncio
async def test_saturated_peer_is_dropped_when_notified_of_join(registry):
    with subscription(registry, "abc", Role.RECEIVER, max_pending=1) as receiver:
        assert receiver.send_json({"type": "backlog"})

        with subscription(registry, "abc", Role.SENDER, max_pending=1) as sender:
            assert receiver.closed
            assert registry.get_session_roles("abc") == [Role.SENDER]

            # No peer-joined for a pairing that never completed
            sender.close()
            assert await sender.receive() is CHANNEL_CLOSED

        assert await receiver.receive() == {"type": "backlog"}
        assert await receiver.receive() is CHANNEL_CLOSED

    assert not registry.has_session("abc")


@pytest.mark.asyncio
async def test_closed_channel_drains_then_ends():
    c = channel("abc", Role.RECEIVER)
    assert c.send_json({"type": "offer"})
    c.close()

    assert c.send_json({"type": "late"}) is False
    assert await c.receive() == {"type": "offer"}
    assert await c.receive() is CHANNEL_CLOSED


def test_close_all_closes_every_channel(registry):
    channels = [channel("a", Role.RECEIVER), channel("a", Role.SENDER), channel("b", Role.SENDER)]
    registry.register("a", Role.RECEIVER, channels[0])
    registry.register("a", Role.SENDER, channels[1])
    registry.register("b", Role.SENDER, channels[2])

    assert registry.close_all() == 3
    assert all(c.closed for c in channels)


def test_registries_are_independent():
    first = SessionRegistry()
    second = SessionRegistry()
    first.register("abc", Role.RECEIVER, channel("abc", Role.RECEIVER))

    assert first.has_session("abc")
    assert not second.has_session("abc")
