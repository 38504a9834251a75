# storefront/routers/addresses.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.address_repo import AddressRepository
from storefront.schemas.address import AddressCreate, AddressRead, AddressUpdate
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])

repo = AddressRepository()
service = AddressService(repo)


@router.get("", response_model=list[AddressRead])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Saved addresses, default first.
    """
    return service.list_addresses(session, current_user.id)


@router.post(
    "",
    response_model=AddressRead,
    status_code=status.HTTP_201_CREATED,
)
def create_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.create_address(session, current_user.id, payload)


@router.get("/{address_id}", response_model=AddressRead)
def get_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_address(session, current_user.id, address_id)


@router.patch("/{address_id}", response_model=AddressRead)
def update_address(
    address_id: int,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Partial update. Setting `is_default` clears the flag on the others.
    """
    return service.update_address(session, current_user.id, address_id, payload)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    service.delete_address(session, current_user.id, address_id)
    return None


@router.put("/{address_id}/default", response_model=AddressRead)
def set_default_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.set_default(session, current_user.id, address_id)
