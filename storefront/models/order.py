# storefront/models/order.py
from datetime import datetime
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class Order(SQLModel, table=True):
    """
    Customer order.

    Amounts:
      - subtotal: sum of quantity * price_at_purchase
      - discount_amount: coupon discount (0 when none)
      - total_amount: subtotal - discount_amount

    `shipping_address` is a snapshot of the address used at checkout so
    later address edits do not rewrite history.
    """

    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    subtotal: float = Field(default=0.0)
    discount_amount: float = Field(default=0.0)
    total_amount: float

    coupon_code: str | None = None

    # pending | paid | confirmed | packed | shipped | delivered | cancelled | refunded
    status: str = Field(default="pending", index=True)

    stripe_payment_id: str | None = None

    shipping_address: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON),
    )

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order, priced at checkout time.
    """

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(foreign_key="orders.id", index=True)

    product_id: int | None = Field(
        default=None,
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(gt=0)

    price_at_purchase: float
