"""Fan-out of session updates to connected operators."""

from dataclasses import dataclass

from verification_relay.services.connections import Connection, ConnectionManager

ADMIN_TOPIC = "admins"

SESSIONS_LIST_EVENT = "sessions_list"
NEW_SESSION_EVENT = "new_session"
SESSION_UPDATED_EVENT = "session_updated"


@dataclass
class AdminBroadcastGroup:
    """Observer set of admin connections built on a shared topic."""

    connections: ConnectionManager
    topic: str = ADMIN_TOPIC

    def join(self, connection: Connection) -> None:
        """Register a connection as an admin."""
        self.connections.join(connection, self.topic)

    def leave(self, connection: Connection) -> None:
        """Unregister an admin connection."""
        self.connections.leave(connection, self.topic)

    def members(self) -> list[Connection]:
        return self.connections.members(self.topic)

    def broadcast_list(self, sessions: list[dict[str, object]]) -> int:
        """Replace the waiting list on every admin screen."""
        return self.connections.emit(self.topic, SESSIONS_LIST_EVENT, sessions)

    def broadcast_event(self, name: str, payload: object) -> int:
        """Send a discrete notification to every admin."""
        return self.connections.emit(self.topic, name, payload)

    def send_snapshot(
        self, connection: Connection, sessions: list[dict[str, object]]
    ) -> bool:
        """Send the current waiting list to a single admin."""
        if connection.closed:
            return False
        return connection.send(SESSIONS_LIST_EVENT, sessions)
