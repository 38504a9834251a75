# storefront/schemas/product.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Gender = Literal["men", "women", "unisex"]


class ScentNotes(SQLModel):
    """Pyramid of notes; each tier is a list of note names."""

    top: list[str] = []
    middle: list[str] = []
    base: list[str] = []


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: int
    name: str
    slug: str
    brand: str
    description: str | None = None
    price: float
    original_price: float | None = None
    stock: int
    concentration: str | None = None
    size: str | None = None
    scent_notes: ScentNotes | None = None
    image_url: str | None = None
    gender: str
    is_trending: bool
    is_active: bool
    occasion: str | None = None
    longevity: str | None = None
    projection: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductCard(SQLModel):
    """Compact product used by recommendation rails."""

    id: int
    name: str
    brand: str
    slug: str
    price: float
    image_url: str | None = None


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `brand-name`.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    brand: str = Field(max_length=255)
    slug: str | None = None
    description: str | None = None
    price: float = Field(gt=0)
    original_price: float | None = Field(default=None, gt=0)
    stock: int = Field(default=0, ge=0)
    concentration: str | None = None
    size: str | None = None
    scent_notes: ScentNotes | None = None
    image_url: str | None = None
    gender: Gender = "unisex"
    is_trending: bool = False
    is_active: bool = True
    occasion: str | None = None
    longevity: str | None = None
    projection: str | None = None

    @field_validator("name", "brand")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    brand: str | None = Field(default=None, max_length=255)
    slug: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, gt=0)
    original_price: float | None = None
    stock: int | None = Field(default=None, ge=0)
    concentration: str | None = None
    size: str | None = None
    scent_notes: ScentNotes | None = None
    image_url: str | None = None
    gender: Gender | None = None
    is_trending: bool | None = None
    is_active: bool | None = None
    occasion: str | None = None
    longevity: str | None = None
    projection: str | None = None

    @field_validator("name", "brand", "slug")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductDeleteResult(SQLModel):
    success: bool = True
    message: str
