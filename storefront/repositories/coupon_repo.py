# storefront/repositories/coupon_repo.py
from sqlalchemy import update
from sqlmodel import Session, select

from storefront.models.coupon import Coupon


class CouponRepository:
    """
    Data access layer for Coupon.
    """

    def get_by_id(self, session: Session, coupon_id: int) -> Coupon | None:
        return session.get(Coupon, coupon_id)

    def get_by_code(self, session: Session, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code.strip().upper())
        return session.exec(stmt).first()

    def list_coupons(self, session: Session) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, coupon: Coupon) -> Coupon:
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def update(self, session: Session, coupon: Coupon) -> Coupon:
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def delete(self, session: Session, coupon: Coupon) -> None:
        session.delete(coupon)
        session.commit()

    def increment_usage(self, session: Session, coupon_id: int) -> bool:
        """
        Count one redemption, respecting usage_limit (no commit).

        Returns False when the limit was reached in the meantime.
        """
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                (Coupon.usage_limit.is_(None)) | (Coupon.used_count < Coupon.usage_limit),
            )
            .values(used_count=Coupon.used_count + 1)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1
