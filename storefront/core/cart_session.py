# storefront/core/cart_session.py
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request, Response

from storefront.core.auth import get_current_user
from storefront.core.config import get_settings
from storefront.models.user import User

settings = get_settings()


@dataclass
class CartSession:
    """
    Per-request cart identity.

    Resolved once by `get_cart_session` and handed to the cart service, so
    services never read or write cookies themselves. The router calls
    `apply_cart_cookie` afterwards to persist whatever the service decided:

      - issued_token: a guest token minted during this request
      - retire_token: the guest cart was folded into the user's cart
    """

    user_id: int | None
    token: str | None
    issued_token: str | None = None
    retire_token: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def mint_token(self) -> str:
        token = str(uuid.uuid4())
        self.token = token
        self.issued_token = token
        self.retire_token = False
        return token

    def retire(self) -> None:
        self.token = None
        self.issued_token = None
        self.retire_token = True


def get_cart_session(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> CartSession:
    """
    FastAPI dependency building the CartSession from the bearer token (if
    any) and the guest cart cookie (if any).
    """
    return CartSession(
        user_id=user.id if user is not None else None,
        token=request.cookies.get(settings.CART_COOKIE_NAME),
    )


def apply_cart_cookie(response: Response, cart_session: CartSession) -> None:
    """
    Write the guest cart cookie back when the service minted or retired it.

    Cookie contract: HTTP-only, path "/", 30-day max-age.
    """
    if cart_session.issued_token:
        response.set_cookie(
            key=settings.CART_COOKIE_NAME,
            value=cart_session.issued_token,
            max_age=settings.CART_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.CART_COOKIE_SECURE,
        )
    elif cart_session.retire_token:
        response.delete_cookie(key=settings.CART_COOKIE_NAME, path="/")
