# storefront/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User

REVENUE_STATUS = "delivered"


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard and reports.
    """

    def count_customers(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User).where(User.role == "customer")
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_orders(self, session: Session, status: str | None = None) -> int:
        stmt = select(func.count()).select_from(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        value = session.exec(stmt).one()
        return int(value or 0)

    def total_revenue(self, session: Session) -> float:
        """
        Sum of total_amount for delivered orders.
        """
        stmt = (
            select(func.coalesce(func.sum(Order.total_amount), 0.0))
            .where(Order.status == REVENUE_STATUS)
        )
        value = session.exec(stmt).one()
        return float(value or 0.0)

    def low_stock(self, session: Session, threshold: int = 10, limit: int = 10) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.stock < threshold)
            .order_by(Product.stock.asc(), Product.id.asc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def daily_sales(self, session: Session, since: datetime) -> list[tuple]:
        """
        Revenue and order count per calendar day since `since`.
        Excludes cancelled and refunded orders.

        func.date() renders DATE(...) on both Postgres and SQLite.
        """
        day_expr = func.date(Order.created_at)

        stmt = (
            select(
                day_expr.label("day"),
                func.coalesce(func.sum(Order.total_amount), 0.0).label("revenue"),
                func.count(Order.id).label("order_count"),
            )
            .where(
                Order.created_at >= since,
                Order.status.not_in(("cancelled", "refunded")),
            )
            .group_by(day_expr)
            .order_by(day_expr)
        )

        return list(session.exec(stmt).all())

    def top_products(
        self,
        session: Session,
        limit: int = 5,
        since: datetime | None = None,
    ) -> list[tuple]:
        """
        Top products by revenue (quantity * price_at_purchase).
        """
        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
        revenue_sum = func.coalesce(
            func.sum(OrderItem.quantity * OrderItem.price_at_purchase),
            0.0,
        )

        stmt = (
            select(
                OrderItem.product_id,
                Product.name,
                Product.brand,
                qty_sum.label("total_quantity"),
                revenue_sum.label("total_revenue"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.status.not_in(("cancelled", "refunded")))
        )
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        stmt = (
            stmt.group_by(OrderItem.product_id, Product.name, Product.brand)
            .order_by(revenue_sum.desc())
            .limit(limit)
        )

        return list(session.exec(stmt).all())

    def brand_revenue(self, session: Session, since: datetime) -> list[tuple]:
        qty_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
        revenue_sum = func.coalesce(
            func.sum(OrderItem.quantity * OrderItem.price_at_purchase),
            0.0,
        )
        stmt = (
            select(Product.brand, qty_sum.label("units_sold"), revenue_sum.label("revenue"))
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.created_at >= since)
            .group_by(Product.brand)
            .order_by(revenue_sum.desc())
        )
        return list(session.exec(stmt).all())

    def product_sales(self, session: Session) -> dict[int, tuple[int, float]]:
        """product_id -> (units sold, revenue) across all orders."""
        stmt = (
            select(
                OrderItem.product_id,
                func.coalesce(func.sum(OrderItem.quantity), 0),
                func.coalesce(func.sum(OrderItem.quantity * OrderItem.price_at_purchase), 0.0),
            )
            .where(OrderItem.product_id.is_not(None))
            .group_by(OrderItem.product_id)
        )
        return {
            product_id: (int(units or 0), float(revenue or 0.0))
            for product_id, units, revenue in session.exec(stmt).all()
        }

    def customer_totals(self, session: Session) -> dict[int, tuple[int, float]]:
        """user_id -> (order count, total spent)."""
        stmt = (
            select(
                Order.user_id,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0.0),
            )
            .where(Order.user_id.is_not(None))
            .group_by(Order.user_id)
        )
        return {
            user_id: (int(count or 0), float(total or 0.0))
            for user_id, count, total in session.exec(stmt).all()
        }

    def latest_orders(
        self,
        session: Session,
        limit: int = 5,
    ) -> list[tuple[Order, User | None]]:
        """
        Latest N orders by created_at (any status) with their customer.
        """
        stmt = (
            select(Order, User)
            .join(User, User.id == Order.user_id, isouter=True)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())
