# storefront/routers/auth.py
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from storefront.core.cart_session import CartSession, apply_cart_cookie, get_cart_session
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
)
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
cart_service = CartService(CartRepository(), ProductRepository())
service = AuthService(repo, cart_service)


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def signup(
    payload: SignupRequest,
    session: Session = Depends(get_session),
):
    """
    Create a customer account and return an access token.
    """
    return service.signup(session, payload)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
    cart_session: CartSession = Depends(get_cart_session),
):
    """
    Exchange credentials for an access token.

    A guest cart cookie sent along is merged into the account's cart and
    cleared.
    """
    result = service.login(session, payload, cart_session)
    apply_cart_cookie(response, cart_session)
    return result


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    session: Session = Depends(get_session),
):
    return service.forgot_password(session, payload)


@router.get("/reset-password")
def check_reset_token(
    token: str,
    session: Session = Depends(get_session),
):
    """
    Tell the reset form whether `token` is still usable.
    """
    return service.check_reset_token(session, token)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    session: Session = Depends(get_session),
):
    service.reset_password(session, payload)
    return MessageResponse(message="Password has been reset successfully")
