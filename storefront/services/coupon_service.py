# storefront/services/coupon_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.core.clock import ensure_utc, utcnow
from storefront.models.coupon import Coupon
from storefront.models.user import User
from storefront.repositories.coupon_repo import CouponRepository
from storefront.schemas.coupon import CouponCreate, CouponQuote, CouponUpdate
from storefront.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def compute_discount(discount_type: str, discount_value: float, subtotal: float) -> float:
    """
    percentage -> subtotal * value / 100
    fixed      -> value, never more than the subtotal
    Rounded to cents.
    """
    if discount_type == "percentage":
        amount = subtotal * discount_value / 100
    else:
        amount = discount_value
    return round(min(max(amount, 0.0), subtotal), 2)


class CouponService:
    """
    Promotions: validation/quoting for shoppers and CRUD for staff.
    """

    def __init__(self, repo: CouponRepository, audit: AuditService):
        self.repo = repo
        self.audit = audit

    # ----- Redemption -----

    def get_redeemable(self, session: Session, code: str, subtotal: float) -> Coupon:
        """
        Look up a coupon usable for `subtotal`.

        Raises:
            HTTPException(400): unknown, inactive, expired, exhausted or
            below the minimum order amount.
        """
        coupon = self.repo.get_by_code(session, code)
        if coupon is None or not coupon.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid coupon code",
            )
        if coupon.expires_at is not None and ensure_utc(coupon.expires_at) < utcnow():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coupon has expired",
            )
        if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coupon usage limit reached",
            )
        if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Minimum order amount is {coupon.min_order_amount:.2f}",
            )
        return coupon

    def quote(self, session: Session, code: str, subtotal: float) -> CouponQuote:
        coupon = self.get_redeemable(session, code, subtotal)
        discount = compute_discount(coupon.discount_type, coupon.discount_value, subtotal)
        return CouponQuote(
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            discount_amount=discount,
            total=round(subtotal - discount, 2),
        )

    # ----- Admin -----

    def list_coupons(self, session: Session) -> list[Coupon]:
        return self.repo.list_coupons(session)

    def get_coupon(self, session: Session, coupon_id: int) -> Coupon:
        coupon = self.repo.get_by_id(session, coupon_id)
        if coupon is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Coupon not found",
            )
        return coupon

    def create_coupon(
        self,
        session: Session,
        payload: CouponCreate,
        admin: User,
        ip_address: str | None = None,
    ) -> Coupon:
        if self.repo.get_by_code(session, payload.code):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coupon code already exists",
            )

        try:
            coupon = self.repo.create(session, Coupon(**payload.model_dump()))
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coupon code already exists",
            )

        self.audit.record(
            session,
            admin_id=admin.id,
            action="coupon.create",
            entity_type="coupon",
            entity_id=coupon.id,
            details={"code": coupon.code},
            ip_address=ip_address,
        )
        session.commit()
        session.refresh(coupon)
        return coupon

    def update_coupon(
        self,
        session: Session,
        coupon_id: int,
        payload: CouponUpdate,
        admin: User,
        ip_address: str | None = None,
    ) -> Coupon:
        coupon = self.get_coupon(session, coupon_id)
        data = payload.model_dump(exclude_unset=True)

        if data.get("code") and data["code"] != coupon.code:
            if self.repo.get_by_code(session, data["code"]):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Coupon code already exists",
                )

        for field, value in data.items():
            if value is None and field in ("code", "discount_type", "discount_value", "is_active"):
                continue
            setattr(coupon, field, value)

        if coupon.discount_type == "percentage" and coupon.discount_value > 100:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="percentage discount cannot exceed 100",
            )

        self.audit.record(
            session,
            admin_id=admin.id,
            action="coupon.update",
            entity_type="coupon",
            entity_id=coupon.id,
            details={"changes": {k: v for k, v in data.items() if k != "expires_at"}},
            ip_address=ip_address,
        )
        return self.repo.update(session, coupon)

    def delete_coupon(
        self,
        session: Session,
        coupon_id: int,
        admin: User,
        ip_address: str | None = None,
    ) -> None:
        coupon = self.get_coupon(session, coupon_id)
        self.audit.record(
            session,
            admin_id=admin.id,
            action="coupon.delete",
            entity_type="coupon",
            entity_id=coupon.id,
            details={"code": coupon.code},
            ip_address=ip_address,
        )
        self.repo.delete(session, coupon)
