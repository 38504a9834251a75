# storefront/schemas/user.py
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Role = Literal["customer", "super_admin", "admin", "operations", "support", "marketing"]


class SignupRequest(SQLModel):
    """
    Payload for creating a customer account.

    Validation rules:
      - name cannot be empty or whitespace
      - password 8..72 characters (bcrypt input limit)
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(max_length=72)


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: int
    name: str | None
    email: str
    role: Role
    image: str | None = None
    created_at: datetime


class TokenResponse(SQLModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Email and role are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    image: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role


class ForgotPasswordRequest(SQLModel):
    email: EmailStr


class ForgotPasswordResponse(SQLModel):
    success: bool = True
    message: str
    dev_token: str | None = None


class ResetPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=72)


class MessageResponse(SQLModel):
    success: bool = True
    message: str | None = None
