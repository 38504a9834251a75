# storefront/routers/promotions.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.schemas.coupon import CouponQuote, CouponValidateRequest
from storefront.services.audit_service import AuditService
from storefront.services.coupon_service import CouponService

router = APIRouter(prefix="/promotions", tags=["Promotions"])

repo = CouponRepository()
service = CouponService(repo, AuditService(AuditRepository()))


@router.post("/validate", response_model=CouponQuote)
def validate_coupon(
    payload: CouponValidateRequest,
    session: Session = Depends(get_session),
):
    """
    Preview the discount a coupon gives on `subtotal`.

    400 when the code is unknown, inactive, expired, used up or the
    subtotal is below the coupon's minimum.
    """
    return service.quote(session, payload.code, payload.subtotal)
