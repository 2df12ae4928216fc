"""Session lifecycle orchestration and connection hooks."""

import logging
from dataclasses import dataclass
from datetime import datetime

from verification_relay.domain.sessions import SessionRecord
from verification_relay.services.broadcast import (
    NEW_SESSION_EVENT,
    SESSION_UPDATED_EVENT,
    AdminBroadcastGroup,
)
from verification_relay.services.connections import Connection, ConnectionManager
from verification_relay.services.delivery import TargetedDelivery
from verification_relay.services.registry import SessionRegistry

logger = logging.getLogger(__name__)

ADMIN_CONNECT_EVENT = "admin_connect"
USER_CONNECT_EVENT = "user_connect"


@dataclass
class SessionService:
    """Applies registry mutations and fans out the resulting updates.

    Each mutation and the sends it triggers happen without awaiting, so on a
    single event loop admins receive snapshots in the order mutations occur.
    """

    registry: SessionRegistry
    connections: ConnectionManager
    admins: AdminBroadcastGroup
    delivery: TargetedDelivery

    def create_session(
        self, document_type: str, document_number: str, session_id: str
    ) -> SessionRecord:
        """Register a waiting session and notify every admin."""
        update = self.registry.create(document_type, document_number, session_id)
        if update.evicted:
            logger.info(
                "Replaced waiting sessions for document",
                extra={"session_id": session_id, "evicted": update.evicted},
            )
        self.admins.broadcast_event(NEW_SESSION_EVENT, serialize_session(update.record))
        self.admins.broadcast_list(serialize_sessions(update.waiting))
        logger.info(
            "Session created",
            extra={"session_id": session_id, "document_number": document_number},
        )
        return update.record

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        return self.registry.get(session_id)

    def complete_session(
        self,
        session_id: str,
        redirect_target: str,
        contact_phone: str | None = None,
        contact_email: str | None = None,
    ) -> SessionRecord | None:
        """Record the outcome, update admins and redirect the client."""
        update = self.registry.complete(
            session_id, redirect_target, contact_phone, contact_email
        )
        if update is None:
            return None
        self.admins.broadcast_event(
            SESSION_UPDATED_EVENT, serialize_session(update.record)
        )
        self.admins.broadcast_list(serialize_sessions(update.waiting))
        self.delivery.send(session_id, redirect_payload(update.record))
        logger.info(
            "Session redirected",
            extra={"session_id": session_id, "redirect_to": redirect_target},
        )
        return update.record

    def list_waiting(self) -> list[SessionRecord]:
        """Return waiting sessions, oldest first."""
        return self.registry.list_waiting()

    def on_admin_identify(self, connection: Connection) -> None:
        """Join the admin group and send the current backlog."""
        self.admins.join(connection)
        self.admins.send_snapshot(
            connection, serialize_sessions(self.registry.list_waiting())
        )
        logger.info(
            "Admin connected", extra={"connection_id": connection.connection_id}
        )

    def on_user_identify(self, connection: Connection, session_id: str) -> None:
        """Subscribe a kiosk client to its own session's outcome."""
        self.delivery.register(connection, session_id)
        logger.info(
            "User connected for session",
            extra={
                "connection_id": connection.connection_id,
                "session_id": session_id,
            },
        )

    def on_disconnect(self, connection: Connection) -> None:
        """Forget a closed connection."""
        self.connections.discard(connection)
        logger.info(
            "Client disconnected", extra={"connection_id": connection.connection_id}
        )

    def handle_message(self, connection: Connection, event: str, data: object) -> bool:
        """Dispatch an inbound socket event; returns False when ignored."""
        if event == ADMIN_CONNECT_EVENT:
            self.on_admin_identify(connection)
            return True
        if event == USER_CONNECT_EVENT:
            session_id = _coerce_session_id(data)
            if session_id is None:
                logger.warning(
                    "user_connect without a session id",
                    extra={"connection_id": connection.connection_id},
                )
                return False
            self.on_user_identify(connection, session_id)
            return True
        logger.debug(
            "Ignoring unknown socket event",
            extra={"connection_id": connection.connection_id, "event": event},
        )
        return False


def serialize_session(record: SessionRecord) -> dict[str, object]:
    """Render a session in the wire format used by admin and kiosk clients."""
    return {
        "sessionId": record.session_id,
        "documentType": record.document_code,
        "documentNumber": record.document_number,
        "documentTypeText": record.document_type.label,
        "timestamp": _epoch_millis(record.created_at),
        "status": record.status.value,
        "redirectTo": record.redirect_target,
        "phoneNumber": record.contact_phone,
        "emailAddress": record.contact_email,
        "completedAt": _epoch_millis(record.completed_at)
        if record.completed_at
        else None,
    }


def serialize_sessions(records: list[SessionRecord]) -> list[dict[str, object]]:
    return [serialize_session(record) for record in records]


def redirect_payload(record: SessionRecord) -> dict[str, object]:
    return {
        "redirectTo": record.redirect_target,
        "phoneNumber": record.contact_phone,
        "emailAddress": record.contact_email,
    }


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _coerce_session_id(data: object) -> str | None:
    if isinstance(data, dict):
        data = data.get("sessionId")
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None
