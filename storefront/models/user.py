# storefront/models/user.py
from datetime import datetime

from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class User(SQLModel, table=True):
    """
    Storefront account.

    Role:
      - "customer" for shoppers
      - "super_admin" | "admin" | "operations" | "support" | "marketing"
        for back-office staff (see core/auth.py for the permission matrix)
      - guests are represented by the absence of a token, never by a row.

    `password_hash` is a bcrypt hash; it stays NULL for accounts created
    through an external identity provider.
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)

    name: str | None = Field(default=None, max_length=100)

    email: str = Field(
        unique=True,
        index=True,
        description="Lower-cased login email",
    )

    password_hash: str | None = Field(default=None)

    role: str = Field(
        default="customer",
        index=True,
        description="Application role",
    )

    image: str | None = None

    email_verified: datetime | None = None

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Creation timestamp (UTC)",
    )


class PasswordResetToken(SQLModel, table=True):
    """
    Pending password reset.

    Only the SHA-256 digest of the token is stored; the raw token travels in
    the reset link.
    """

    __tablename__ = "password_reset_tokens"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="users.id", index=True)

    token: str = Field(unique=True, index=True)

    expires_at: datetime

    created_at: datetime = Field(default_factory=utcnow)
