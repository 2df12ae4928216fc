"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from verification_relay.config import Settings
from verification_relay.services.broadcast import AdminBroadcastGroup
from verification_relay.services.connections import ConnectionManager
from verification_relay.services.delivery import TargetedDelivery
from verification_relay.services.registry import GarbageCollector, SessionRegistry
from verification_relay.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    registry: SessionRegistry
    connections: ConnectionManager
    session_service: SessionService
    garbage_collector: GarbageCollector
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    registry = SessionRegistry(
        dedup_policy=resolved_settings.dedup_policy,
        completed_retention=timedelta(
            seconds=resolved_settings.completed_retention_seconds
        ),
        stale_after=timedelta(seconds=resolved_settings.stale_session_seconds),
    )
    connections = ConnectionManager()
    session_service = SessionService(
        registry=registry,
        connections=connections,
        admins=AdminBroadcastGroup(connections),
        delivery=TargetedDelivery(connections),
    )
    garbage_collector = GarbageCollector(
        registry=registry,
        interval_seconds=resolved_settings.gc_interval_seconds,
    )

    async def close_resources() -> None:
        await garbage_collector.stop()

    return AppContainer(
        settings=resolved_settings,
        registry=registry,
        connections=connections,
        session_service=session_service,
        garbage_collector=garbage_collector,
        close_resources=close_resources,
    )
