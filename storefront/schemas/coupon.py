# storefront/schemas/coupon.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

DiscountType = Literal["percentage", "fixed"]


class CouponCreate(SQLModel):
    """
    Admin payload for a new coupon. `code` is stored upper-cased.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1, max_length=50)
    discount_type: DiscountType = "percentage"
    discount_value: float = Field(gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, gt=0)
    is_active: bool = True
    expires_at: datetime | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v

    @model_validator(mode="after")
    def check_percentage(self) -> "CouponCreate":
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class CouponUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    code: str | None = Field(default=None, max_length=50)
    discount_type: DiscountType | None = None
    discount_value: float | None = Field(default=None, gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, gt=0)
    is_active: bool | None = None
    expires_at: datetime | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v


class CouponRead(SQLModel):
    id: int
    code: str
    discount_type: DiscountType
    discount_value: float
    min_order_amount: float | None = None
    usage_limit: int | None = None
    used_count: int
    is_active: bool
    expires_at: datetime | None = None
    created_at: datetime


class CouponValidateRequest(SQLModel):
    code: str
    subtotal: float = Field(ge=0)


class CouponQuote(SQLModel):
    """Result of applying a coupon to a subtotal."""

    code: str
    discount_type: DiscountType
    discount_value: float
    discount_amount: float
    total: float
