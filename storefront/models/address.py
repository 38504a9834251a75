# storefront/models/address.py
from datetime import datetime

from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class Address(SQLModel, table=True):
    """
    Saved shipping address.
    At most one address per user has is_default = True.
    """

    __tablename__ = "addresses"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="users.id", index=True)

    label: str = Field(default="Home", max_length=50)
    full_name: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str = Field(default="US", max_length=2)

    is_default: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow)
