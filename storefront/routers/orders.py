# storefront/routers/orders.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
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
    CheckoutRequest,
    CheckoutResponse,
    OrderWithItemsRead,
)
from storefront.services.audit_service import AuditService
from storefront.services.coupon_service import CouponService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
coupon_repo = CouponRepository()
audit = AuditService(AuditRepository())
service = OrderService(
    order_repo,
    cart_repo,
    product_repo,
    AddressRepository(),
    coupon_repo,
    UserRepository(),
    CouponService(coupon_repo, audit),
    audit,
)


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Create an order from the current user's cart.

    Stock, coupon usage and the cart are updated in the same transaction as
    the order itself.
    """
    order = service.checkout(session, current_user.id, payload)
    return CheckoutResponse(order_id=order.id, order=order)


@router.get("", response_model=list[OrderWithItemsRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's orders, newest first, with items.
    """
    return service.list_user_orders(session, current_user.id, skip, limit)


@router.get("/{order_id}", response_model=OrderWithItemsRead)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return service.get_user_order(session, current_user.id, order_id)
