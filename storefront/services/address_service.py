# storefront/services/address_service.py
from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.models.address import Address
from storefront.repositories.address_repo import AddressRepository
from storefront.schemas.address import AddressCreate, AddressUpdate


class AddressService:
    """
    Saved shipping addresses.

    Invariant: a user has at most one default address. Whenever an address
    becomes the default, every other default of that user is cleared first,
    in the same commit.
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def list_addresses(self, session: Session, user_id: int) -> list[Address]:
        return self.repo.list_for_user(session, user_id)

    def get_address(self, session: Session, user_id: int, address_id: int) -> Address:
        address = self.repo.get_for_user(session, user_id, address_id)
        if address is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Address not found",
            )
        return address

    def create_address(self, session: Session, user_id: int, payload: AddressCreate) -> Address:
        data = payload.model_dump()
        data["label"] = data.get("label") or "Home"
        data["country"] = (data.get("country") or "US").upper()

        if payload.is_default:
            self.repo.unset_defaults(session, user_id)

        return self.repo.save(session, Address(user_id=user_id, **data))

    def update_address(
        self,
        session: Session,
        user_id: int,
        address_id: int,
        payload: AddressUpdate,
    ) -> Address:
        address = self.get_address(session, user_id, address_id)
        data = payload.model_dump(exclude_unset=True)

        make_default = data.pop("is_default", None)
        for field, value in data.items():
            if value is None and field != "address_line2":
                continue
            if field == "country":
                value = value.upper()
            setattr(address, field, value)

        if make_default is True:
            self.repo.unset_defaults(session, user_id)
            address.is_default = True
        elif make_default is False:
            address.is_default = False

        return self.repo.save(session, address)

    def delete_address(self, session: Session, user_id: int, address_id: int) -> None:
        address = self.get_address(session, user_id, address_id)
        self.repo.delete(session, address)

    def set_default(self, session: Session, user_id: int, address_id: int) -> Address:
        address = self.get_address(session, user_id, address_id)
        self.repo.unset_defaults(session, user_id)
        address.is_default = True
        return self.repo.save(session, address)
