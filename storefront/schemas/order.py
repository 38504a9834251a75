# storefront/schemas/order.py
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

OrderStatus = Literal[
    "pending",
    "paid",
    "confirmed",
    "packed",
    "shipped",
    "delivered",
    "cancelled",
    "refunded",
]

ORDER_STATUSES: tuple[str, ...] = OrderStatus.__args__  # type: ignore[attr-defined]


class ShippingAddress(SQLModel):
    """
    Inline shipping address for checkout (when no saved address is used).
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str
    phone: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str = "US"

    @field_validator("full_name", "phone", "address_line1", "city", "state", "postal_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class CheckoutRequest(SQLModel):
    """
    Payload for creating an order from the current cart.

    Backend derives:
      - user_id from token
      - status = 'pending'
      - prices from the catalog, totals, coupon discount
      - items from cart

    Address resolution: address_id, else shipping_address, else the user's
    default address.
    """

    model_config = ConfigDict(extra="forbid")

    address_id: int | None = None
    shipping_address: ShippingAddress | None = None
    coupon_code: str | None = None

    @field_validator("coupon_code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().upper()
        return v or None


class OrderItemRead(SQLModel):
    id: int
    order_id: int
    product_id: int | None
    product_name: str | None = None
    product_slug: str | None = None
    image_url: str | None = None
    quantity: int
    price_at_purchase: float
    line_total: float


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: int
    user_id: int | None
    subtotal: float
    discount_amount: float
    total_amount: float
    coupon_code: str | None = None
    status: OrderStatus
    stripe_payment_id: str | None = None
    shipping_address: dict[str, Any] | None = None
    created_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]
    customer_name: str | None = None
    customer_email: str | None = None


class CheckoutResponse(SQLModel):
    success: bool = True
    order_id: int
    order: OrderWithItemsRead


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: str


class OrderStatusResult(SQLModel):
    success: bool = True
    status: OrderStatus


class BulkStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    order_ids: list[int] = []
    status: str


class BulkStatusResult(SQLModel):
    success: bool = True
    updated: int
