# storefront/services/auth_service.py
import logging
import smtplib
from datetime import timedelta

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.core.cart_session import CartSession
from storefront.core.clock import ensure_utc, utcnow
from storefront.core.config import get_settings
from storefront.core.email_client import send_email
from storefront.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from storefront.models.user import PasswordResetToken, User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UserRead,
)
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)
settings = get_settings()

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link."


class AuthService:
    """
    Credentials sign-up / login and the password reset flow.

    Login also reconciles the guest cart carried by the request's
    CartSession into the user's cart.
    """

    def __init__(self, repo: UserRepository, cart_service: CartService):
        self.repo = repo
        self.cart_service = cart_service

    @staticmethod
    def _token_response(user: User) -> TokenResponse:
        token = create_access_token(user.id, {"email": user.email, "role": user.role})
        return TokenResponse(access_token=token, user=UserRead.model_validate(user))

    # ----- Sign up / login -----

    def signup(self, session: Session, payload: SignupRequest) -> TokenResponse:
        """
        Create a customer account.

        Raises:
            HTTPException(400): email already registered.
        """
        email = payload.email.lower()
        if self.repo.get_by_email(session, email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )

        user = User(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
            role="customer",
        )
        try:
            user = self.repo.create(session, user)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )

        logger.info("New customer account %s", user.id)
        return self._token_response(user)

    def login(
        self,
        session: Session,
        payload: LoginRequest,
        cart_session: CartSession,
    ) -> TokenResponse:
        """
        Verify credentials and issue an access token.

        If the request carries a guest cart cookie, the guest cart is merged
        into the user's cart and the cookie is retired.

        Raises:
            HTTPException(401): unknown email or wrong password.
        """
        user = self.repo.get_by_email(session, payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        cart_session.user_id = user.id
        self.cart_service.merge_guest_cart(session, cart_session)

        return self._token_response(user)

    # ----- Password reset -----

    def forgot_password(
        self,
        session: Session,
        payload: ForgotPasswordRequest,
    ) -> ForgotPasswordResponse:
        """
        Start a password reset.

        The response is identical whether or not the account exists. When it
        does, previous tokens are dropped, a new one is stored (as SHA-256)
        and a reset link is emailed. Mail failures are logged only.
        """
        response = ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE)

        user = self.repo.get_by_email(session, payload.email)
        if user is None:
            return response

        raw_token, token_hash = generate_reset_token()
        self.repo.delete_reset_tokens(session, user.id)
        self.repo.create_reset_token(
            session,
            PasswordResetToken(
                user_id=user.id,
                token=token_hash,
                expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
            ),
        )

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={raw_token}"
        try:
            send_email(
                to_email=user.email,
                subject="Reset your password",
                text_body=(
                    f"Hi {user.name or 'there'},\n\n"
                    "We received a request to reset your password. "
                    f"Open the link below within {settings.PASSWORD_RESET_TTL_MINUTES} minutes:\n\n"
                    f"{reset_url}\n\n"
                    "If you did not ask for this, you can ignore this email."
                ),
            )
        except (RuntimeError, smtplib.SMTPException, OSError):
            logger.exception("Failed to send password reset email to user %s", user.id)

        if settings.is_development:
            response.dev_token = raw_token
        return response

    def _get_valid_reset_token(self, session: Session, raw_token: str) -> PasswordResetToken:
        record = self.repo.get_reset_token(session, hash_reset_token(raw_token))
        if record is None or ensure_utc(record.expires_at) < utcnow():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired reset token",
            )
        return record

    def check_reset_token(self, session: Session, raw_token: str) -> dict:
        self._get_valid_reset_token(session, raw_token)
        return {"valid": True}

    def reset_password(self, session: Session, payload: ResetPasswordRequest) -> None:
        """
        Set a new password and invalidate every reset token of that user.

        Raises:
            HTTPException(400): token unknown or expired.
        """
        record = self._get_valid_reset_token(session, payload.token)
        user = self.repo.get_by_id(session, record.user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired reset token",
            )

        user.password_hash = hash_password(payload.password)
        self.repo.delete_reset_tokens(session, user.id)
        self.repo.update(session, user)
        logger.info("Password reset completed for user %s", user.id)
