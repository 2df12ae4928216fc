"""Tests for connection topics, admin fan-out and targeted delivery."""

from tests.conftest import FakeConnection
from verification_relay.services.broadcast import AdminBroadcastGroup
from verification_relay.services.connections import ConnectionManager
from verification_relay.services.delivery import TargetedDelivery


def test_join_is_idempotent() -> None:
    manager = ConnectionManager()
    connection = FakeConnection("c1")

    manager.join(connection, "room")
    manager.join(connection, "room")

    assert manager.members("room") == [connection]


def test_discard_leaves_every_topic() -> None:
    manager = ConnectionManager()
    connection = FakeConnection("c1")
    manager.join(connection, "a")
    manager.join(connection, "b")

    manager.discard(connection)
    manager.discard(connection)

    assert manager.members("a") == []
    assert manager.members("b") == []
    assert manager.topics_of(connection) == set()


def test_emit_counts_accepted_deliveries() -> None:
    manager = ConnectionManager()
    ok = FakeConnection("ok")
    full = FakeConnection("full", accept=False)
    gone = FakeConnection("gone", is_closed=True)
    for connection in (ok, full, gone):
        manager.join(connection, "room")

    assert manager.emit("room", "ping", {"n": 1}) == 1
    assert ok.messages == [("ping", {"n": 1})]
    assert full.messages == []
    assert gone.messages == []


def test_emit_tolerates_membership_change_during_dispatch() -> None:
    manager = ConnectionManager()

    class LeavingConnection(FakeConnection):
        def send(self, event: str, data: object) -> bool:
            manager.discard(self)
            return super().send(event, data)

    leaving = LeavingConnection("leaving")
    staying = FakeConnection("staying")
    manager.join(leaving, "room")
    manager.join(staying, "room")

    assert manager.emit("room", "ping", None) == 2
    assert manager.members("room") == [staying]


def test_broadcast_group_with_no_admins_is_noop() -> None:
    group = AdminBroadcastGroup(ConnectionManager())

    assert group.broadcast_list([]) == 0
    assert group.broadcast_event("new_session", {}) == 0


def test_broadcast_group_join_and_leave() -> None:
    group = AdminBroadcastGroup(ConnectionManager())
    first = FakeConnection("a1")
    second = FakeConnection("a2")
    group.join(first)
    group.join(second)
    group.leave(first)
    group.leave(first)

    group.broadcast_event("session_updated", {"sessionId": "S1"})

    assert first.messages == []
    assert second.messages == [("session_updated", {"sessionId": "S1"})]


def test_send_snapshot_skips_closed_connection() -> None:
    group = AdminBroadcastGroup(ConnectionManager())
    closed = FakeConnection("a1", is_closed=True)

    assert group.send_snapshot(closed, []) is False


def test_targeted_delivery_reaches_only_session_topic() -> None:
    delivery = TargetedDelivery(ConnectionManager())
    first_tab = FakeConnection("k1")
    second_tab = FakeConnection("k2")
    other = FakeConnection("k3")
    delivery.register(first_tab, "S1")
    delivery.register(second_tab, "S1")
    delivery.register(other, "S2")

    delivered = delivery.send("S1", {"redirectTo": "/next"})

    assert delivered == 2
    assert first_tab.messages == [("redirect", {"redirectTo": "/next"})]
    assert second_tab.messages == [("redirect", {"redirectTo": "/next"})]
    assert other.messages == []


def test_targeted_delivery_without_listener_is_noop() -> None:
    delivery = TargetedDelivery(ConnectionManager())

    assert delivery.send("S1", {"redirectTo": "/next"}) == 0
