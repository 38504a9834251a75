# storefront/routers/wishlist.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.wishlist_repo import WishlistRepository
from storefront.schemas.wishlist import WishlistAdd, WishlistItemRead
from storefront.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

repo = WishlistRepository()
service = WishlistService(repo, ProductRepository())


@router.get("", response_model=list[WishlistItemRead])
def list_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Wishlist of the current user, newest first, with product details.
    """
    return service.list_items(session, current_user.id)


@router.post(
    "",
    response_model=WishlistItemRead,
    status_code=status.HTTP_201_CREATED,
)
def add_to_wishlist(
    payload: WishlistAdd,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.add(session, current_user.id, payload.product_id)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_wishlist(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    service.remove(session, current_user.id, product_id)
    return None
