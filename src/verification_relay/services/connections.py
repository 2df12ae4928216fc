"""Connection bookkeeping: topic membership and best-effort fan-out."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Interface for a live client connection."""

    connection_id: str

    @property
    def closed(self) -> bool:
        """Return True once the underlying transport is gone."""

    def send(self, event: str, data: object) -> bool:
        """Queue a named event for delivery without blocking.

        Returns False when the message could not be queued.
        """


@dataclass
class ConnectionManager:
    """Tracks which connections joined which topics."""

    _topics: dict[str, dict[str, Connection]] = field(default_factory=dict)
    _memberships: dict[str, set[str]] = field(default_factory=dict)

    def join(self, connection: Connection, topic: str) -> None:
        """Add a connection to a topic. Joining twice is a no-op."""
        self._topics.setdefault(topic, {})[connection.connection_id] = connection
        self._memberships.setdefault(connection.connection_id, set()).add(topic)

    def leave(self, connection: Connection, topic: str) -> None:
        """Remove a connection from a topic if it is a member."""
        members = self._topics.get(topic)
        if members is not None:
            members.pop(connection.connection_id, None)
            if not members:
                self._topics.pop(topic, None)
        topics = self._memberships.get(connection.connection_id)
        if topics is not None:
            topics.discard(topic)
            if not topics:
                self._memberships.pop(connection.connection_id, None)

    def discard(self, connection: Connection) -> None:
        """Remove a connection from every topic it joined."""
        for topic in self.topics_of(connection):
            self.leave(connection, topic)

    def topics_of(self, connection: Connection) -> set[str]:
        return set(self._memberships.get(connection.connection_id, ()))

    def members(self, topic: str) -> list[Connection]:
        """Return a snapshot of the connections currently in a topic."""
        return list(self._topics.get(topic, {}).values())

    def emit(self, topic: str, event: str, data: object) -> int:
        """Send an event to every member of a topic.

        Returns the number of connections that accepted the message.
        """
        delivered = 0
        for connection in self.members(topic):
            if connection.closed:
                continue
            if connection.send(event, data):
                delivered += 1
            else:
                logger.warning(
                    "Dropped event for connection",
                    extra={
                        "connection_id": connection.connection_id,
                        "topic": topic,
                        "event": event,
                    },
                )
        return delivered
