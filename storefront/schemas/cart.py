# storefront/schemas/cart.py
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: int
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for setting the quantity of a cart line.
    A quantity <= 0 removes the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int


class GuestCartLine(SQLModel):
    product_id: int
    quantity: int = Field(gt=0)


class CartMergeRequest(SQLModel):
    """
    Lines held by an anonymous session, to be folded into the user's cart.
    """

    guest_items: list[GuestCartLine] = []


class CartSyncRequest(SQLModel):
    """
    Full replacement of the user's cart lines.
    """

    items: list[GuestCartLine] = []


class CartItemRead(SQLModel):
    """
    Cart line hydrated with product attributes, including line_total.
    """

    id: int
    product_id: int
    slug: str
    name: str
    brand: str
    price: float
    quantity: int
    image_url: str | None = None
    size: str | None = None
    scent_notes: dict[str, Any] | None = None
    line_total: float


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    cart_id: int | None = None
    items: list[CartItemRead]
    total_quantity: int
    total_price: float
