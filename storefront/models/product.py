# storefront/models/product.py
from datetime import datetime
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from storefront.core.clock import utcnow


class Product(SQLModel, table=True):
    """
    Fragrance catalog entry.

    `scent_notes` is a JSON document shaped like
    {"top": [...], "middle": [...], "base": [...]}; search and
    recommendations match against its text form.
    """

    __tablename__ = "products"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(index=True, max_length=255)

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    brand: str = Field(index=True, max_length=255)

    description: str | None = None

    price: float = Field(gt=0, description="Unit price")

    original_price: float | None = Field(
        default=None,
        description="Pre-sale price shown struck through",
    )

    stock: int = Field(default=0, ge=0)

    # e.g. "Eau de Parfum", "Eau de Toilette", "Parfum"
    concentration: str | None = None

    # e.g. "100ml"
    size: str | None = None

    scent_notes: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON),
    )

    image_url: str | None = None

    # men | women | unisex
    gender: str = Field(default="unisex", index=True)

    is_trending: bool = Field(default=False, index=True)

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    occasion: str | None = None
    longevity: str | None = None
    projection: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
