"""In-memory session registry and its expiry sweep."""

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from verification_relay.domain.sessions import (
    DedupPolicy,
    DocumentType,
    SessionRecord,
    SessionStatus,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class RegistryUpdate:
    """A mutated record plus the waiting list observed right after it."""

    record: SessionRecord
    waiting: list[SessionRecord]
    evicted: list[str] = field(default_factory=list)


class SessionRegistry:
    """Owns every session record; all access goes through one lock."""

    def __init__(
        self,
        dedup_policy: DedupPolicy = DedupPolicy.NONE,
        completed_retention: timedelta = timedelta(seconds=10),
        stale_after: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.dedup_policy = dedup_policy
        self.completed_retention = completed_retention
        self.stale_after = stale_after
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def create(
        self, document_type: str, document_number: str, session_id: str
    ) -> RegistryUpdate:
        """Insert a new waiting session and return the refreshed waiting list.

        A reused ``session_id`` replaces the previous record so that client
        retries succeed. Under ``DedupPolicy.DOCUMENT`` every other waiting
        session for the same document number is dropped first.
        """
        record = SessionRecord(
            session_id=session_id,
            document_type=DocumentType.parse(document_type),
            document_code=document_type,
            document_number=document_number,
            created_at=self._clock(),
        )
        with self._lock:
            evicted: list[str] = []
            if self.dedup_policy is DedupPolicy.DOCUMENT:
                evicted = [
                    existing.session_id
                    for existing in self._records.values()
                    if existing.is_waiting
                    and existing.document_number == document_number
                    and existing.session_id != session_id
                ]
                for stale_id in evicted:
                    del self._records[stale_id]
            # Re-inserting moves an overwritten id to the end of insertion order.
            self._records.pop(session_id, None)
            self._records[session_id] = record
            return RegistryUpdate(
                record=record, waiting=self._waiting_locked(), evicted=evicted
            )

    def get(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        with self._lock:
            return self._records.get(session_id)

    def complete(
        self,
        session_id: str,
        redirect_target: str,
        contact_phone: str | None = None,
        contact_email: str | None = None,
    ) -> RegistryUpdate | None:
        """Mark a session completed; returns None when the id is unknown.

        Completing twice overwrites the outcome and restamps ``completed_at``.
        """
        with self._lock:
            current = self._records.get(session_id)
            if current is None:
                return None
            record = replace(
                current,
                status=SessionStatus.COMPLETED,
                redirect_target=redirect_target,
                contact_phone=contact_phone,
                contact_email=contact_email,
                completed_at=self._clock(),
            )
            self._records[session_id] = record
            return RegistryUpdate(record=record, waiting=self._waiting_locked())

    def list_waiting(self) -> list[SessionRecord]:
        """Return waiting sessions, oldest first."""
        with self._lock:
            return self._waiting_locked()

    def evict(self, session_id: str) -> bool:
        """Drop a session. Returns False if it was already gone."""
        with self._lock:
            return self._records.pop(session_id, None) is not None

    def sweep(self, now: datetime | None = None) -> list[str]:
        """Evict completed sessions past retention and abandoned waiting ones."""
        moment = now or self._clock()
        with self._lock:
            expired = [
                record.session_id
                for record in self._records.values()
                if self._is_expired(record, moment)
            ]
            for session_id in expired:
                del self._records[session_id]
        return expired

    def _is_expired(self, record: SessionRecord, now: datetime) -> bool:
        if record.status is SessionStatus.COMPLETED:
            completed_at = record.completed_at or record.created_at
            return now - completed_at > self.completed_retention
        return now - record.created_at > self.stale_after

    def _waiting_locked(self) -> list[SessionRecord]:
        waiting = [record for record in self._records.values() if record.is_waiting]
        return sorted(waiting, key=lambda record: record.created_at)


@dataclass
class GarbageCollector:
    """Background task that periodically sweeps the registry."""

    registry: SessionRegistry
    interval_seconds: float = 30.0
    _task: asyncio.Task[None] | None = field(default=None, init=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="session-gc")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def collect(self) -> list[str]:
        """Run one sweep and log what was evicted."""
        evicted = self.registry.sweep()
        if evicted:
            logger.info(
                "Evicted expired sessions",
                extra={"count": len(evicted), "session_ids": evicted},
            )
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.collect()
            except Exception:
                logger.exception("Session sweep failed")
