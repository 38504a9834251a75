# storefront/schemas/wishlist.py
from datetime import datetime

from sqlmodel import SQLModel

from storefront.schemas.product import ProductRead


class WishlistAdd(SQLModel):
    product_id: int


class WishlistItemRead(SQLModel):
    id: int
    user_id: int
    product_id: int
    created_at: datetime
    product: ProductRead
