# storefront/services/stats_service.py
from datetime import date, timedelta

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.clock import utcnow
from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import (
    AdminDashboardStats,
    DailySales,
    LatestOrderSummary,
    LowStockProduct,
    TopProduct,
)

LOW_STOCK_THRESHOLD = 10


def as_date(value) -> date:
    """DATE() comes back as a date on Postgres and as 'YYYY-MM-DD' on SQLite."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(
        self,
        session: Session,
        days: int = 30,
        top_n_products: int = 5,
        latest_n_orders: int = 5,
    ) -> AdminDashboardStats:
        if not 1 <= days <= 365:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="days must be between 1 and 365",
            )

        since = utcnow() - timedelta(days=days)

        daily_sales = [
            DailySales(
                date=as_date(day),
                total_revenue=float(revenue or 0.0),
                order_count=int(order_count or 0),
            )
            for day, revenue, order_count in self.repo.daily_sales(session, since=since)
        ]

        top_products = [
            TopProduct(
                product_id=product_id,
                name=name,
                brand=brand,
                total_quantity=int(total_quantity or 0),
                total_revenue=float(product_revenue or 0.0),
            )
            for product_id, name, brand, total_quantity, product_revenue in self.repo.top_products(
                session, limit=top_n_products
            )
        ]

        latest_orders = [
            LatestOrderSummary(
                id=o.id,
                created_at=o.created_at,
                user_id=o.user_id,
                customer_name=customer.name if customer else None,
                total_amount=o.total_amount,
                status=o.status,
            )
            for o, customer in self.repo.latest_orders(session, limit=latest_n_orders)
        ]

        low_stock = [
            LowStockProduct(id=p.id, name=p.name, brand=p.brand, stock=p.stock)
            for p in self.repo.low_stock(session, threshold=LOW_STOCK_THRESHOLD)
        ]

        return AdminDashboardStats(
            total_customers=self.repo.count_customers(session),
            total_orders=self.repo.count_orders(session),
            total_revenue=round(self.repo.total_revenue(session), 2),
            pending_orders=self.repo.count_orders(session, status="pending"),
            low_stock_products=low_stock,
            daily_sales=daily_sales,
            top_products=top_products,
            latest_orders=latest_orders,
        )
