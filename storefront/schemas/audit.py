# storefront/schemas/audit.py
from datetime import datetime
from typing import Any

from sqlmodel import SQLModel


class AuditLogRead(SQLModel):
    id: int
    admin_id: int | None
    admin_name: str | None = None
    admin_email: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    created_at: datetime
