# storefront/models/coupon.py
from datetime import datetime

from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class Coupon(SQLModel, table=True):
    """
    Promotion code.

    discount_type:
      - "percentage": discount_value is a percent of the subtotal (<= 100)
      - "fixed": discount_value is an absolute amount, capped at the subtotal

    usage_limit = NULL means unlimited; expires_at = NULL means no expiry.
    """

    __tablename__ = "coupons"

    id: int | None = Field(default=None, primary_key=True)

    code: str = Field(unique=True, index=True, max_length=50)

    discount_type: str = Field(default="percentage")
    discount_value: float

    min_order_amount: float | None = None

    usage_limit: int | None = None
    used_count: int = Field(default=0)

    is_active: bool = Field(default=True)

    expires_at: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
