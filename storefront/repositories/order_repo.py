# storefront/repositories/order_repo.py
from datetime import datetime
from typing import Iterable

from sqlmodel import Session, select

from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation is a multi-step transaction.
        The service is responsible for calling session.commit().
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status: str | None = None,
    ) -> list[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def list_with_customers(
        self,
        session: Session,
        start: datetime | None = None,
        end: datetime | None = None,
        status: str | None = None,
    ) -> list[tuple[Order, User | None]]:
        """Orders (newest first) with their customer, for reports."""
        stmt = select(Order, User).join(User, User.id == Order.user_id, isouter=True)
        if start is not None:
            stmt = stmt.where(Order.created_at >= start)
        if end is not None:
            stmt = stmt.where(Order.created_at <= end)
        if status:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
        return list(session.exec(stmt).all())

    def get_by_id(self, session: Session, order_id: int) -> Order | None:
        return session.get(Order, order_id)

    def get_many(self, session: Session, order_ids: Iterable[int]) -> list[Order]:
        ids = list(order_ids)
        if not ids:
            return []
        stmt = select(Order).where(Order.id.in_(ids))
        return list(session.exec(stmt).all())

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        return order

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: int,
    ) -> list[tuple[OrderItem, Product | None]]:
        """Items of one order with their product (None once a product is gone)."""
        stmt = (
            select(OrderItem, Product)
            .join(Product, Product.id == OrderItem.product_id, isouter=True)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        return list(session.exec(stmt).all())

    def list_items_for_orders(
        self,
        session: Session,
        order_ids: Iterable[int],
    ) -> list[tuple[OrderItem, Product | None]]:
        ids = list(order_ids)
        if not ids:
            return []
        stmt = (
            select(OrderItem, Product)
            .join(Product, Product.id == OrderItem.product_id, isouter=True)
            .where(OrderItem.order_id.in_(ids))
            .order_by(OrderItem.order_id, OrderItem.id)
        )
        return list(session.exec(stmt).all())

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items
