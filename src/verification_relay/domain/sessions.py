"""Domain models for verification sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DocumentType(Enum):
    """Identity document kinds accepted at the kiosk."""

    CI = "ci"
    CE = "ce"
    PP = "pp"
    OTHER = "other"

    @classmethod
    def parse(cls, code: str | None) -> "DocumentType":
        """Map a raw document code to a known type, falling back to OTHER."""
        cleaned = (code or "").strip().lower()
        for member in cls:
            if member.value == cleaned:
                return member
        return cls.OTHER

    @property
    def label(self) -> str:
        return _DOCUMENT_LABELS.get(self, "Documento")


_DOCUMENT_LABELS = {
    DocumentType.CI: "Cédula de Ciudadanía",
    DocumentType.CE: "Cédula de Extranjería",
    DocumentType.PP: "Pasaporte",
}


class SessionStatus(Enum):
    """Lifecycle states of a session."""

    WAITING = "waiting"
    COMPLETED = "completed"


class DedupPolicy(Enum):
    """How session creation treats other waiting sessions for one document."""

    NONE = "none"
    DOCUMENT = "document"


@dataclass(frozen=True)
class SessionRecord:
    """Represents one verification session held by the registry."""

    session_id: str
    document_type: DocumentType
    document_code: str
    document_number: str
    created_at: datetime
    status: SessionStatus = SessionStatus.WAITING
    redirect_target: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    completed_at: datetime | None = None

    @property
    def is_waiting(self) -> bool:
        return self.status is SessionStatus.WAITING
