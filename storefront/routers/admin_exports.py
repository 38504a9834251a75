# storefront/routers/admin_exports.py
from datetime import date

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.stats_repo import StatsRepository
from storefront.repositories.support_repo import SupportRepository
from storefront.repositories.user_repo import UserRepository
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.export_service import CsvExport, ExportService

router = APIRouter(prefix="/admin/export", tags=["Admin Exports"])

audit_repo = AuditRepository()
service = ExportService(
    OrderRepository(),
    UserRepository(),
    ProductRepository(),
    CouponRepository(),
    SupportRepository(),
    audit_repo,
    StatsRepository(),
    AuditService(audit_repo),
)


def csv_response(export: CsvExport) -> Response:
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/orders")
def export_orders(
    request: Request,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    status: str | None = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("orders")),
):
    """
    Orders as CSV. `endDate` includes the whole day.
    """
    return csv_response(
        service.orders(session, admin, start_date, end_date, status, client_ip(request))
    )


@router.get("/users")
def export_users(
    request: Request,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    role: str | None = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("users")),
):
    return csv_response(
        service.users(session, admin, start_date, end_date, role, client_ip(request))
    )


@router.get("/products")
def export_products(
    request: Request,
    gender: str | None = None,
    include_disabled: bool = Query(default=False, alias="includeDisabled"),
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("products")),
):
    return csv_response(
        service.products(session, admin, gender, include_disabled, client_ip(request))
    )


@router.get(
    "/inventory",
    dependencies=[Depends(require_permission("inventory"))],
)
def export_inventory(
    filter: str = "all",
    session: Session = Depends(get_session),
):
    """
    Stock levels. `filter`: all | low (1-9 left) | out (none left).
    """
    return csv_response(service.inventory(session, filter))


@router.get(
    "/promotions",
    dependencies=[Depends(require_permission("promotions"))],
)
def export_promotions(session: Session = Depends(get_session)):
    return csv_response(service.promotions(session))


@router.get(
    "/support",
    dependencies=[Depends(require_permission("support"))],
)
def export_support_tickets(
    status: str | None = None,
    priority: str | None = None,
    session: Session = Depends(get_session),
):
    return csv_response(service.support_tickets(session, status, priority))


@router.get(
    "/audit-logs",
    dependencies=[Depends(require_permission("logs"))],
)
def export_audit_logs(
    action: str | None = None,
    session: Session = Depends(get_session),
):
    """
    The latest 1000 audit entries.
    """
    return csv_response(service.audit_logs(session, action))


@router.get(
    "/finance",
    dependencies=[Depends(require_permission("analytics"))],
)
def export_finance(
    period: str = "all",
    session: Session = Depends(get_session),
):
    """
    Orders of the period (all | today | week | month | year) followed by a
    summary block.
    """
    return csv_response(service.finance(session, period))


@router.get(
    "/analytics",
    dependencies=[Depends(require_permission("analytics"))],
)
def export_analytics(
    type: str = "summary",
    days: int = Query(default=30, ge=1, le=365),
    session: Session = Depends(get_session),
):
    """
    `type`: summary (daily revenue), products (top 50) or brands.
    """
    return csv_response(service.analytics(session, type, days))
