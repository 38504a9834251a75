# storefront/schemas/support.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

TicketStatus = Literal["open", "in_progress", "resolved", "closed"]
TicketPriority = Literal["low", "medium", "high", "urgent"]


class TicketCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    subject: str = Field(max_length=200)
    message: str
    order_id: int | None = None

    @field_validator("subject", "message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class TicketUpdate(SQLModel):
    """Admin triage payload; only provided fields change."""

    model_config = ConfigDict(extra="forbid")

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: int | None = None
    admin_notes: str | None = None


class TicketRead(SQLModel):
    id: int
    user_id: int | None
    order_id: int | None = None
    subject: str
    message: str
    status: TicketStatus
    priority: TicketPriority
    assigned_to: int | None = None
    admin_notes: str | None = None
    created_at: datetime
    updated_at: datetime
