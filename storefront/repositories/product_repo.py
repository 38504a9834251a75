# storefront/repositories/product_repo.py
from typing import Any, Iterable

from sqlalchemy import String, cast, delete, func, or_, update
from sqlmodel import Session, select

from storefront.models.cart import CartItem
from storefront.models.order import OrderItem
from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem


def scent_notes_text():
    """SQL expression for the scent notes JSON rendered as text ('' when NULL)."""
    return func.coalesce(cast(Product.scent_notes, String), "")


def notes_match_any(notes: Iterable[str]):
    """OR of case-insensitive substring matches against the notes text."""
    text = scent_notes_text()
    return or_(*[text.ilike(f"%{note}%") for note in notes])


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - Callers build filter conditions; this class only runs them.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: int) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def get_many(self, session: Session, product_ids: Iterable[int]) -> list[Product]:
        ids = list(product_ids)
        if not ids:
            return []
        stmt = select(Product).where(Product.id.in_(ids))
        return list(session.exec(stmt).all())

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        gender: str | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if gender:
            stmt = stmt.where(Product.gender == gender)
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        """
        Remove the row for good. Cart and wishlist lines go with it; order
        lines keep their price history with product_id set to NULL.
        """
        session.exec(delete(CartItem).where(CartItem.product_id == product.id))  # type: ignore[call-overload]
        session.exec(delete(WishlistItem).where(WishlistItem.product_id == product.id))  # type: ignore[call-overload]
        session.exec(  # type: ignore[call-overload]
            update(OrderItem).where(OrderItem.product_id == product.id).values(product_id=None)
        )
        session.delete(product)
        session.commit()

    # ----- Filtered queries (search, recommendations) -----

    def find(
        self,
        session: Session,
        conditions: list[Any],
        order_by: list[Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Product]:
        stmt = select(Product).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.exec(stmt).all())

    def count(self, session: Session, conditions: list[Any]) -> int:
        stmt = select(func.count()).select_from(Product).where(*conditions)
        return int(session.exec(stmt).one() or 0)

    def random(
        self,
        session: Session,
        exclude_ids: Iterable[int],
        limit: int,
    ) -> list[Product]:
        stmt = select(Product).where(Product.is_active == True)  # noqa: E712
        ids = list(exclude_ids)
        if ids:
            stmt = stmt.where(Product.id.not_in(ids))
        stmt = stmt.order_by(func.random()).limit(limit)
        return list(session.exec(stmt).all())

    def distinct_brands(self, session: Session, limit: int = 20) -> list[str]:
        stmt = select(Product.brand).distinct().order_by(Product.brand).limit(limit)
        return [b for b in session.exec(stmt).all() if b]

    def distinct_concentrations(self, session: Session, limit: int = 10) -> list[str]:
        stmt = (
            select(Product.concentration)
            .where(Product.concentration.is_not(None))
            .distinct()
            .order_by(Product.concentration)
            .limit(limit)
        )
        return [c for c in session.exec(stmt).all() if c]

    def list_by_stock(
        self,
        session: Session,
        max_stock: int | None = None,
        min_stock: int | None = None,
        only_active: bool = False,
    ) -> list[Product]:
        """Products ordered by stock ascending, optionally bounded."""
        stmt = select(Product)
        if max_stock is not None:
            stmt = stmt.where(Product.stock <= max_stock)
        if min_stock is not None:
            stmt = stmt.where(Product.stock >= min_stock)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Product.stock.asc(), Product.id.asc())
        return list(session.exec(stmt).all())

    # ----- Inventory -----

    def decrement_stock(self, session: Session, product_id: int, quantity: int) -> bool:
        """
        Take `quantity` units off the shelf only if that many are left.

        Runs as a single conditional UPDATE inside the caller's transaction
        (no commit). Returns False when the row was not updated.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1
