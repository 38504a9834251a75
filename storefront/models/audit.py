# storefront/models/audit.py
from datetime import datetime
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class AuditLog(SQLModel, table=True):
    """
    Back-office action trail.

    entity_id is a string so bulk actions can record "bulk".
    """

    __tablename__ = "audit_logs"

    id: int | None = Field(default=None, primary_key=True)

    admin_id: int | None = Field(default=None, foreign_key="users.id", index=True)

    action: str = Field(index=True, max_length=100)

    entity_type: str | None = Field(default=None, max_length=50)
    entity_id: str | None = None

    details: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON),
    )

    ip_address: str | None = None

    created_at: datetime = Field(default_factory=utcnow, index=True)
