# storefront/routers/cart.py
from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.core.cart_session import CartSession, apply_cart_cookie, get_cart_session
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartMergeRequest,
    CartSummary,
    CartSyncRequest,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=CartSummary)
def get_cart(
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    """
    Get the current cart summary.

    Signed-in shoppers get their account cart; guests get the cart bound to
    their cart cookie (empty when there is none).
    """
    return service.get_cart(session, cart_session)


@router.post("/items", response_model=CartSummary)
def add_to_cart(
    payload: CartItemCreate,
    response: Response,
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    """
    Add product to the current cart.

    The first add of a guest creates the cart and sets the cart cookie.
    """
    summary = service.add_item(session, cart_session, payload)
    apply_cart_cookie(response, cart_session)
    return summary


@router.patch("/items/{product_id}", response_model=CartSummary)
def update_cart_item(
    product_id: int,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    """
    Update quantity of a product in the cart.

    A quantity of 0 or less removes the line.
    """
    return service.update_item(session, cart_session, product_id, payload)


@router.delete("/items/{product_id}", response_model=CartSummary)
def remove_cart_item(
    product_id: int,
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    return service.remove_item(session, cart_session, product_id)


@router.delete("", response_model=CartSummary)
def clear_cart(
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    return service.clear_cart(session, cart_session)


# -------- Signed-in reconciliation --------


@router.post("/merge", response_model=CartSummary)
def merge_cart(
    payload: CartMergeRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Add client-held guest lines to the account cart.

    Quantities of products already in the cart are summed; unknown or
    disabled products are skipped.
    """
    return service.merge_guest_items(session, current_user.id, payload.guest_items)


@router.get("/sync", response_model=CartSummary)
def read_synced_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_user_cart(session, current_user.id)


@router.put("/sync", response_model=CartSummary)
def sync_cart(
    payload: CartSyncRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Replace the account cart with `items`.
    """
    return service.sync_items(session, current_user.id, payload.items)
