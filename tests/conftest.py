"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from verification_relay.config import Settings
from verification_relay.containers import AppContainer, build_container
from verification_relay.domain.sessions import DedupPolicy
from verification_relay.services.broadcast import AdminBroadcastGroup
from verification_relay.services.connections import Connection, ConnectionManager
from verification_relay.services.delivery import TargetedDelivery
from verification_relay.services.registry import SessionRegistry
from verification_relay.services.sessions import SessionService


@dataclass
class FakeConnection(Connection):
    """Fake connection that records every queued event."""

    connection_id: str
    messages: list[tuple[str, object]] = field(default_factory=list)
    is_closed: bool = False
    accept: bool = True

    @property
    def closed(self) -> bool:
        return self.is_closed

    def send(self, event: str, data: object) -> bool:
        if self.is_closed or not self.accept:
            return False
        self.messages.append((event, data))
        return True

    def events(self) -> list[str]:
        return [event for event, _ in self.messages]

    def last(self, event: str) -> object:
        for name, data in reversed(self.messages):
            if name == event:
                return data
        raise AssertionError(f"no {event} event recorded")


@dataclass
class ManualClock:
    """Clock that only moves when told to."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def build_service(registry: SessionRegistry) -> SessionService:
    connections = ConnectionManager()
    return SessionService(
        registry=registry,
        connections=connections,
        admins=AdminBroadcastGroup(connections),
        delivery=TargetedDelivery(connections),
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def registry(clock: ManualClock) -> SessionRegistry:
    return SessionRegistry(
        dedup_policy=DedupPolicy.NONE,
        completed_retention=timedelta(seconds=10),
        stale_after=timedelta(minutes=30),
        clock=clock,
    )


@pytest.fixture
def service(registry: SessionRegistry) -> SessionService:
    return build_service(registry)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        dedup_policy=DedupPolicy.NONE,
        gc_interval_seconds=3600,
        completed_retention_seconds=10,
        stale_session_seconds=1800,
        cors_origins="*",
    )


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    return build_container(settings)
