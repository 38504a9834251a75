# storefront/routers/admin_orders.py
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.address_repo import AddressRepository
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.order import (
    BulkStatusResult,
    BulkStatusUpdate,
    OrderStatusResult,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.coupon_service import CouponService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])

coupon_repo = CouponRepository()
audit = AuditService(AuditRepository())
service = OrderService(
    OrderRepository(),
    CartRepository(),
    ProductRepository(),
    AddressRepository(),
    coupon_repo,
    UserRepository(),
    CouponService(coupon_repo, audit),
    audit,
)


@router.get(
    "",
    response_model=list[OrderWithItemsRead],
    dependencies=[Depends(require_permission("orders"))],
)
def list_all_orders(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    status: str | None = None,
):
    """
    List all orders with items and customer, newest first.

    `status=all` is the same as no filter.
    """
    return service.list_all_orders(session, skip, limit, status_filter=status)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_permission("orders"))],
)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
):
    return service.get_order_admin(session, order_id)


@router.patch("/{order_id}/status", response_model=OrderStatusResult)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("orders", "edit")),
):
    """
    Set an order's status.

    Allowed: pending, paid, confirmed, packed, shipped, delivered,
    cancelled, refunded.
    """
    order = service.update_status(session, order_id, payload, admin, client_ip(request))
    return OrderStatusResult(status=order.status)


@router.post("/bulk-update", response_model=BulkStatusResult)
def bulk_update_status(
    payload: BulkStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("orders", "edit")),
):
    updated = service.bulk_update_status(session, payload, admin, client_ip(request))
    return BulkStatusResult(updated=updated)
