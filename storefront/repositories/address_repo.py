# storefront/repositories/address_repo.py
from sqlalchemy import update
from sqlmodel import Session, select

from storefront.models.address import Address


class AddressRepository:

    def list_for_user(self, session: Session, user_id: int) -> list[Address]:
        # default first, then newest
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        )
        return list(session.exec(stmt).all())

    def get_for_user(self, session: Session, user_id: int, address_id: int) -> Address | None:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        return session.exec(stmt).first()

    def get_default(self, session: Session, user_id: int) -> Address | None:
        stmt = select(Address).where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
        return session.exec(stmt).first()

    def unset_defaults(self, session: Session, user_id: int) -> None:
        """Clear is_default on every address of the user (no commit)."""
        stmt = (
            update(Address)
            .where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
            .values(is_default=False)
        )
        session.exec(stmt)  # type: ignore[call-overload]

    def save(self, session: Session, address: Address) -> Address:
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    def delete(self, session: Session, address: Address) -> None:
        session.delete(address)
        session.commit()
