# storefront/routers/admin_promotions.py
from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.schemas.coupon import CouponCreate, CouponRead, CouponUpdate
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.coupon_service import CouponService

router = APIRouter(prefix="/admin/promotions", tags=["Admin Promotions"])

repo = CouponRepository()
service = CouponService(repo, AuditService(AuditRepository()))


@router.get(
    "",
    response_model=list[CouponRead],
    dependencies=[Depends(require_permission("promotions"))],
)
def list_coupons(session: Session = Depends(get_session)):
    return service.list_coupons(session)


@router.get(
    "/{coupon_id}",
    response_model=CouponRead,
    dependencies=[Depends(require_permission("promotions"))],
)
def get_coupon(
    coupon_id: int,
    session: Session = Depends(get_session),
):
    return service.get_coupon(session, coupon_id)


@router.post(
    "",
    response_model=CouponRead,
    status_code=status.HTTP_201_CREATED,
)
def create_coupon(
    payload: CouponCreate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("promotions", "edit")),
):
    """
    Create a coupon. Codes are stored upper-cased and must be unique.
    """
    return service.create_coupon(session, payload, admin, client_ip(request))


@router.patch("/{coupon_id}", response_model=CouponRead)
def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("promotions", "edit")),
):
    return service.update_coupon(session, coupon_id, payload, admin, client_ip(request))


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: int,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("promotions", "edit")),
):
    service.delete_coupon(session, coupon_id, admin, client_ip(request))
    return None
