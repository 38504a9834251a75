# storefront/schemas/address.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class AddressCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    full_name: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str | None = Field(default=None, max_length=2)
    is_default: bool = False

    @field_validator("full_name", "phone", "address_line1", "city", "state", "postal_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class AddressUpdate(SQLModel):
    """Partial update; omitted fields keep their value."""

    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    full_name: str | None = None
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = Field(default=None, max_length=2)
    is_default: bool | None = None


class AddressRead(SQLModel):
    id: int
    user_id: int
    label: str
    full_name: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str
    is_default: bool
    created_at: datetime
