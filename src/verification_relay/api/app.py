"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from verification_relay.adapters.websocket_connection import WebSocketConnection
from verification_relay.api.models import (
    CreateSessionRequest,
    RedirectRequest,
    SocketMessage,
)
from verification_relay.app_logging import configure_logging
from verification_relay.config import parse_cors_origins
from verification_relay.containers import AppContainer
from verification_relay.services.sessions import (
    serialize_session,
    serialize_sessions,
)

_NOT_FOUND_BODY = {"success": False, "error": "Session not found"}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.garbage_collector.start()
        logger.info(
            "Session garbage collector started",
            extra={"interval_seconds": container.settings.gc_interval_seconds},
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/status")
    async def service_status(request: Request) -> dict[str, object]:
        """Return registry and connection counters."""
        state_container: AppContainer = request.app.state.container
        service = state_container.session_service
        return {
            "status": "ok",
            "waiting": len(service.list_waiting()),
            "total": len(state_container.registry),
            "admins": len(service.admins.members()),
        }

    @app.post("/api/session")
    async def create_session(
        payload: CreateSessionRequest, request: Request
    ) -> dict[str, object]:
        """Open a verification session for a kiosk client."""
        state_container: AppContainer = request.app.state.container
        record = state_container.session_service.create_session(
            document_type=payload.document_type,
            document_number=payload.document_number,
            session_id=payload.session_id,
        )
        return {"success": True, "sessionId": record.session_id}

    @app.get("/api/sessions")
    async def list_sessions(request: Request) -> dict[str, object]:
        """Return the waiting queue, oldest first."""
        state_container: AppContainer = request.app.state.container
        waiting = state_container.session_service.list_waiting()
        return {"success": True, "sessions": serialize_sessions(waiting)}

    @app.get("/api/session/{session_id}", response_model=None)
    async def get_session(
        session_id: str, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Return one session by id."""
        state_container: AppContainer = request.app.state.container
        record = state_container.session_service.get_session(session_id)
        if record is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND, content=_NOT_FOUND_BODY
            )
        return {"success": True, "session": serialize_session(record)}

    @app.post("/api/session/{session_id}/redirect", response_model=None)
    async def redirect_session(
        session_id: str, payload: RedirectRequest, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Complete a session and push the outcome to its client."""
        state_container: AppContainer = request.app.state.container
        record = state_container.session_service.complete_session(
            session_id,
            redirect_target=payload.redirect_to,
            contact_phone=payload.phone_number,
            contact_email=payload.email_address,
        )
        if record is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND, content=_NOT_FOUND_BODY
            )
        return {"success": True}

    @app.websocket("/ws")
    async def socket_endpoint(websocket: WebSocket) -> None:
        """Relay admin and kiosk events over a WebSocket."""
        state_container: AppContainer = websocket.app.state.container
        service = state_container.session_service
        await websocket.accept()
        connection = WebSocketConnection.create(
            websocket, state_container.settings.outbox_size
        )
        writer = asyncio.create_task(connection.pump())
        logger.info(
            "Socket connected", extra={"connection_id": connection.connection_id}
        )
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                raw = frame.get("text")
                if raw is None:
                    logger.warning(
                        "Ignoring non-text socket frame",
                        extra={"connection_id": connection.connection_id},
                    )
                    continue
                try:
                    message = SocketMessage.model_validate_json(raw)
                except ValidationError:
                    logger.warning(
                        "Malformed socket frame",
                        extra={"connection_id": connection.connection_id},
                    )
                    continue
                service.handle_message(connection, message.event, message.data)
        finally:
            service.on_disconnect(connection)
            connection.close()
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    return app
