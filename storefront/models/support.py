# storefront/models/support.py
from datetime import datetime

from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class SupportTicket(SQLModel, table=True):
    """
    Customer support request, optionally tied to an order.
    """

    __tablename__ = "support_tickets"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int | None = Field(default=None, foreign_key="users.id", index=True)

    order_id: int | None = Field(default=None, foreign_key="orders.id")

    subject: str = Field(max_length=200)
    message: str

    # open | in_progress | resolved | closed
    status: str = Field(default="open", index=True)

    # low | medium | high | urgent
    priority: str = Field(default="medium", index=True)

    assigned_to: int | None = Field(default=None, foreign_key="users.id")

    admin_notes: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
