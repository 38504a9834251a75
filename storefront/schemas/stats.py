# storefront/schemas/stats.py
from datetime import date, datetime

from sqlmodel import SQLModel


class DailySales(SQLModel):
    date: date
    total_revenue: float
    order_count: int


class TopProduct(SQLModel):
    product_id: int
    name: str
    brand: str
    total_quantity: int
    total_revenue: float


class LowStockProduct(SQLModel):
    id: int
    name: str
    brand: str
    stock: int


class LatestOrderSummary(SQLModel):
    id: int
    created_at: datetime
    user_id: int | None
    customer_name: str | None = None
    total_amount: float
    status: str


class AdminDashboardStats(SQLModel):
    """
    Aggregated numbers for the back-office dashboard.

    total_revenue only counts delivered orders.
    """

    total_customers: int
    total_orders: int
    total_revenue: float
    pending_orders: int
    low_stock_products: list[LowStockProduct]
    daily_sales: list[DailySales]
    top_products: list[TopProduct]
    latest_orders: list[LatestOrderSummary]
