# storefront/models/cart.py
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class Cart(SQLModel, table=True):
    """
    Shopping cart.

    Owned either by a guest (`session_token`, mirrored in the cart cookie)
    or by an account (`user_id`). Both columns are unique, so there is
    exactly one cart per token and at most one cart per user.
    """

    __tablename__ = "carts"

    id: int | None = Field(default=None, primary_key=True)

    session_token: str | None = Field(
        default=None,
        unique=True,
        index=True,
    )

    user_id: int | None = Field(
        default=None,
        foreign_key="users.id",
        unique=True,
        index=True,
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CartItem(SQLModel, table=True):
    """
    Line in a cart.
    One cart cannot have 2 rows for the same product.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    id: int | None = Field(default=None, primary_key=True)

    cart_id: int = Field(foreign_key="carts.id", index=True)

    product_id: int = Field(foreign_key="products.id", index=True)

    quantity: int = Field(gt=0, description="Must be >= 1")

    created_at: datetime = Field(default_factory=utcnow)
