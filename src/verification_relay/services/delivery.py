"""Point-to-point delivery of outcomes to the originating client."""

import logging
from dataclasses import dataclass

from verification_relay.services.connections import Connection, ConnectionManager

logger = logging.getLogger(__name__)

REDIRECT_EVENT = "redirect"
SESSION_TOPIC_PREFIX = "session:"


def session_topic(session_id: str) -> str:
    """Topic a kiosk client joins to hear about its own session."""
    return f"{SESSION_TOPIC_PREFIX}{session_id}"


@dataclass
class TargetedDelivery:
    """Routes a message to the connections joined to a session's topic."""

    connections: ConnectionManager

    def register(self, connection: Connection, session_id: str) -> None:
        """Associate a client connection with its own session id."""
        self.connections.join(connection, session_topic(session_id))

    def send(self, session_id: str, payload: dict[str, object]) -> int:
        """Deliver a redirect; with nobody listening this does nothing."""
        delivered = self.connections.emit(
            session_topic(session_id), REDIRECT_EVENT, payload
        )
        if not delivered:
            logger.info(
                "No client connected for redirect",
                extra={"session_id": session_id},
            )
        return delivered
