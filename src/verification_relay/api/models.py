"""Pydantic models for HTTP and socket payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateSessionRequest(BaseModel):
    """Kiosk request to open a verification session."""

    model_config = ConfigDict(populate_by_name=True)

    document_type: str = Field(alias="documentType")
    document_number: str = Field(alias="documentNumber", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1)


class RedirectRequest(BaseModel):
    """Operator decision for a session."""

    model_config = ConfigDict(populate_by_name=True)

    redirect_to: str = Field(alias="redirectTo", min_length=1)
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    email_address: str | None = Field(default=None, alias="emailAddress")


class SocketMessage(BaseModel):
    """Inbound socket frame."""

    event: str
    data: Any = None
