# storefront/services/export_service.py
"""
CSV reports for the back office.

Every export is built with csv.writer(QUOTE_ALL): each field is wrapped in
double quotes and embedded quotes are doubled. Lines end with "\\n" and the
header row comes first.
"""
import csv
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from io import StringIO
from typing import Any, Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.clock import utcnow
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.stats_repo import StatsRepository
from storefront.repositories.support_repo import SupportRepository
from storefront.repositories.user_repo import UserRepository
from storefront.services.audit_service import AuditService
from storefront.services.stats_service import LOW_STOCK_THRESHOLD, as_date

logger = logging.getLogger(__name__)

AUDIT_EXPORT_LIMIT = 1000

FINANCE_PERIODS = ("all", "today", "week", "month", "year")
ANALYTICS_TYPES = ("summary", "products", "brands")
INVENTORY_FILTERS = ("all", "low", "out")


@dataclass
class CsvExport:
    filename: str
    content: str


def render_csv(header: list[str], rows: Iterable[Iterable[Any]]) -> str:
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return output.getvalue()


def export_filename(name: str) -> str:
    return f"{name}_{utcnow().date().isoformat()}.csv"


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end(value: date) -> datetime:
    """Inclusive end of day: 23:59:59.999."""
    return datetime.combine(value, time(23, 59, 59, 999000), tzinfo=timezone.utc)


def period_start(period: str, now: datetime) -> datetime | None:
    if period == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == "year":
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return None


def _all_to_none(value: str | None) -> str | None:
    return None if value in (None, "", "all") else value


class ExportService:

    def __init__(
        self,
        order_repo: OrderRepository,
        user_repo: UserRepository,
        product_repo: ProductRepository,
        coupon_repo: CouponRepository,
        support_repo: SupportRepository,
        audit_repo: AuditRepository,
        stats_repo: StatsRepository,
        audit: AuditService,
    ):
        self.order_repo = order_repo
        self.user_repo = user_repo
        self.product_repo = product_repo
        self.coupon_repo = coupon_repo
        self.support_repo = support_repo
        self.audit_repo = audit_repo
        self.stats_repo = stats_repo
        self.audit = audit

    def _record_export(
        self,
        session: Session,
        admin: User,
        entity_type: str,
        count: int,
        filters: dict[str, Any],
        ip_address: str | None,
    ) -> None:
        self.audit.record(
            session,
            admin_id=admin.id,
            action=f"export.{entity_type}",
            entity_type=entity_type,
            details={"count": count, "filters": filters},
            ip_address=ip_address,
        )
        session.commit()
        logger.info("Exported %d %s row(s) for admin %s", count, entity_type, admin.id)

    # ----- Orders / customers / catalog -----

    def orders(
        self,
        session: Session,
        admin: User,
        start_date: date | None = None,
        end_date: date | None = None,
        status_filter: str | None = None,
        ip_address: str | None = None,
    ) -> CsvExport:
        rows = self.order_repo.list_with_customers(
            session,
            start=day_start(start_date) if start_date else None,
            end=day_end(end_date) if end_date else None,
            status=_all_to_none(status_filter),
        )

        items_by_order: dict[int, list[str]] = {}
        for item, product in self.order_repo.list_items_for_orders(session, [o.id for o, _ in rows]):
            label = f"{product.name if product else 'Unknown'} x{item.quantity}"
            items_by_order.setdefault(item.order_id, []).append(label)

        content = render_csv(
            [
                "Order ID",
                "Customer Name",
                "Customer Email",
                "Total Amount",
                "Status",
                "Payment ID",
                "Items Count",
                "Products",
                "Created At",
            ],
            (
                [
                    order.id,
                    customer.name if customer and customer.name else "Guest",
                    customer.email if customer else "N/A",
                    f"{order.total_amount:.2f}",
                    order.status,
                    order.stripe_payment_id or "N/A",
                    len(items_by_order.get(order.id, [])),
                    "; ".join(items_by_order.get(order.id, [])),
                    _iso(order.created_at),
                ]
                for order, customer in rows
            ),
        )

        self._record_export(
            session,
            admin,
            "orders",
            len(rows),
            {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status_filter,
            },
            ip_address,
        )
        return CsvExport(export_filename("orders"), content)

    def users(
        self,
        session: Session,
        admin: User,
        start_date: date | None = None,
        end_date: date | None = None,
        role: str | None = None,
        ip_address: str | None = None,
    ) -> CsvExport:
        users = self.user_repo.list_for_export(
            session,
            start=day_start(start_date) if start_date else None,
            end=day_end(end_date) if end_date else None,
            role=_all_to_none(role),
        )
        totals = self.stats_repo.customer_totals(session)

        content = render_csv(
            ["User ID", "Name", "Email", "Role", "Email Verified", "Orders Count", "Total Spent", "Created At"],
            (
                [
                    u.id,
                    u.name or "",
                    u.email,
                    u.role,
                    "Yes" if u.email_verified else "No",
                    totals.get(u.id, (0, 0.0))[0],
                    f"{totals.get(u.id, (0, 0.0))[1]:.2f}",
                    _iso(u.created_at),
                ]
                for u in users
            ),
        )

        self._record_export(
            session,
            admin,
            "users",
            len(users),
            {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "role": role,
            },
            ip_address,
        )
        return CsvExport(export_filename("users"), content)

    def products(
        self,
        session: Session,
        admin: User,
        gender: str | None = None,
        include_disabled: bool = False,
        ip_address: str | None = None,
    ) -> CsvExport:
        products = self.product_repo.list_products(
            session,
            skip=0,
            limit=None,
            only_active=not include_disabled,
            gender=_all_to_none(gender),
        )
        sales = self.stats_repo.product_sales(session)

        content = render_csv(
            [
                "Product ID",
                "Name",
                "Slug",
                "Brand",
                "Gender",
                "Price",
                "Original Price",
                "Stock",
                "Status",
                "Concentration",
                "Size",
                "Units Sold",
                "Revenue",
                "Trending",
                "Created At",
            ],
            (
                [
                    p.id,
                    p.name,
                    p.slug,
                    p.brand,
                    p.gender,
                    f"{p.price:.2f}",
                    f"{p.original_price:.2f}" if p.original_price is not None else "",
                    p.stock,
                    "Active" if p.is_active else "Disabled",
                    p.concentration or "",
                    p.size or "",
                    sales.get(p.id, (0, 0.0))[0],
                    f"{sales.get(p.id, (0, 0.0))[1]:.2f}",
                    "Yes" if p.is_trending else "No",
                    _iso(p.created_at),
                ]
                for p in products
            ),
        )

        self._record_export(
            session,
            admin,
            "products",
            len(products),
            {"gender": gender, "include_disabled": include_disabled},
            ip_address,
        )
        return CsvExport(export_filename("products"), content)

    def inventory(self, session: Session, stock_filter: str = "all") -> CsvExport:
        if stock_filter not in INVENTORY_FILTERS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"filter must be one of: {', '.join(INVENTORY_FILTERS)}",
            )

        if stock_filter == "low":
            products = self.product_repo.list_by_stock(session, min_stock=1, max_stock=LOW_STOCK_THRESHOLD - 1)
        elif stock_filter == "out":
            products = self.product_repo.list_by_stock(session, max_stock=0)
        else:
            products = self.product_repo.list_by_stock(session)

        def stock_status(stock: int) -> str:
            if stock == 0:
                return "Out of Stock"
            if stock < LOW_STOCK_THRESHOLD:
                return "Low Stock"
            return "In Stock"

        content = render_csv(
            ["Product ID", "Name", "Brand", "Price", "Stock", "Status", "Active"],
            (
                [
                    p.id,
                    p.name,
                    p.brand,
                    f"{p.price:.2f}",
                    p.stock,
                    stock_status(p.stock),
                    "Yes" if p.is_active else "No",
                ]
                for p in products
            ),
        )
        return CsvExport(export_filename("inventory"), content)

    # ----- Promotions / support / audit -----

    def promotions(self, session: Session) -> CsvExport:
        coupons = self.coupon_repo.list_coupons(session)
        content = render_csv(
            [
                "Coupon ID",
                "Code",
                "Discount Type",
                "Discount Value",
                "Min Order Amount",
                "Usage Limit",
                "Used Count",
                "Active",
                "Expires At",
                "Created At",
            ],
            (
                [
                    c.id,
                    c.code,
                    c.discount_type,
                    c.discount_value,
                    c.min_order_amount if c.min_order_amount is not None else "",
                    c.usage_limit if c.usage_limit is not None else "Unlimited",
                    c.used_count,
                    "Yes" if c.is_active else "No",
                    c.expires_at.date().isoformat() if c.expires_at else "No expiry",
                    c.created_at.date().isoformat() if c.created_at else "",
                ]
                for c in coupons
            ),
        )
        return CsvExport(export_filename("promotions"), content)

    def support_tickets(
        self,
        session: Session,
        status_filter: str | None = None,
        priority: str | None = None,
    ) -> CsvExport:
        rows = self.support_repo.list_with_customers(
            session,
            status=_all_to_none(status_filter),
            priority=_all_to_none(priority),
        )
        assignee_ids = {t.assigned_to for t, _ in rows if t.assigned_to is not None}
        assignees = {uid: self.user_repo.get_by_id(session, uid) for uid in assignee_ids}

        content = render_csv(
            [
                "Ticket ID",
                "Subject",
                "Customer Name",
                "Customer Email",
                "Status",
                "Priority",
                "Assigned To",
                "Order ID",
                "Created At",
                "Updated At",
            ],
            (
                [
                    t.id,
                    t.subject,
                    customer.name if customer and customer.name else "Unknown",
                    customer.email if customer else "",
                    t.status,
                    t.priority,
                    (assignees.get(t.assigned_to).name if assignees.get(t.assigned_to) else None) or "Unassigned",
                    t.order_id if t.order_id is not None else "",
                    _iso(t.created_at),
                    _iso(t.updated_at),
                ]
                for t, customer in rows
            ),
        )
        return CsvExport(export_filename("support_tickets"), content)

    def audit_logs(self, session: Session, action: str | None = None) -> CsvExport:
        rows = self.audit_repo.list_with_admins(
            session,
            action=_all_to_none(action),
            limit=AUDIT_EXPORT_LIMIT,
        )
        content = render_csv(
            [
                "Log ID",
                "Admin Name",
                "Admin Email",
                "Action",
                "Entity Type",
                "Entity ID",
                "IP Address",
                "Details",
                "Created At",
            ],
            (
                [
                    log.id,
                    admin.name if admin and admin.name else "System",
                    admin.email if admin else "",
                    log.action,
                    log.entity_type or "",
                    log.entity_id or "",
                    log.ip_address or "",
                    json.dumps(log.details) if log.details else "",
                    _iso(log.created_at),
                ]
                for log, admin in rows
            ),
        )
        return CsvExport(export_filename("audit_logs"), content)

    # ----- Finance / analytics -----

    def finance(self, session: Session, period: str = "all") -> CsvExport:
        """
        Orders in the period plus a summary block (total orders, delivered
        orders, delivered revenue).
        """
        if period not in FINANCE_PERIODS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"period must be one of: {', '.join(FINANCE_PERIODS)}",
            )

        rows = self.order_repo.list_with_customers(session, start=period_start(period, utcnow()))
        delivered = [o for o, _ in rows if o.status == "delivered"]
        revenue = sum(o.total_amount for o in delivered)

        body: list[list[Any]] = [
            [
                order.id,
                customer.name if customer and customer.name else "Guest",
                customer.email if customer else "",
                f"{order.total_amount:.2f}",
                order.status,
                order.stripe_payment_id or "",
                _iso(order.created_at),
            ]
            for order, customer in rows
        ]
        body += [
            [],
            ["Summary"],
            ["Total Orders", len(rows)],
            ["Delivered Orders", len(delivered)],
            ["Total Revenue", f"{revenue:.2f}"],
        ]

        content = render_csv(
            ["Order ID", "Customer Name", "Customer Email", "Amount", "Status", "Payment ID", "Date"],
            body,
        )
        return CsvExport(export_filename("finance_report"), content)

    def analytics(self, session: Session, report_type: str = "summary", days: int = 30) -> CsvExport:
        if report_type not in ANALYTICS_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"type must be one of: {', '.join(ANALYTICS_TYPES)}",
            )

        since = utcnow() - timedelta(days=days)

        if report_type == "products":
            content = render_csv(
                ["Product ID", "Product Name", "Brand", "Units Sold", "Revenue"],
                (
                    [product_id, name, brand, int(qty or 0), f"{float(revenue or 0):.2f}"]
                    for product_id, name, brand, qty, revenue in self.stats_repo.top_products(
                        session, limit=50, since=since
                    )
                ),
            )
            return CsvExport(export_filename("top_products"), content)

        if report_type == "brands":
            content = render_csv(
                ["Brand", "Units Sold", "Revenue"],
                (
                    [brand, int(units or 0), f"{float(revenue or 0):.2f}"]
                    for brand, units, revenue in self.stats_repo.brand_revenue(session, since)
                ),
            )
            return CsvExport(export_filename("brand_analytics"), content)

        daily = sorted(
            self.stats_repo.daily_sales(session, since=since),
            key=lambda r: as_date(r[0]),
            reverse=True,
        )
        content = render_csv(
            ["Date", "Revenue", "Order Count"],
            (
                [as_date(day).isoformat(), f"{float(revenue or 0):.2f}", int(count or 0)]
                for day, revenue, count in daily
            ),
        )
        return CsvExport(export_filename("analytics_summary"), content)
