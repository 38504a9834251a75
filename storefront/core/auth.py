# storefront/core/auth.py
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlmodel import Session

from storefront.core.security import decode_token
from storefront.database import get_session
from storefront.models.user import User

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)

CUSTOMER_ROLE = "customer"

ADMIN_ROLES = ("super_admin", "admin", "operations", "support", "marketing")

# A bare module grants view + edit; "<module>:view" grants view only.
ROLE_PERMISSIONS: dict[str, list[str]] = {
    "super_admin": ["*"],
    "admin": [
        "dashboard",
        "orders",
        "analytics",
        "users",
        "products",
        "inventory",
        "promotions",
        "support",
        "logs",
    ],
    "operations": ["dashboard", "orders", "inventory", "support"],
    "support": ["dashboard", "orders:view", "users:view", "support"],
    "marketing": ["dashboard:view", "analytics:view", "promotions"],
}

ROLE_LEVELS: dict[str, int] = {
    "super_admin": 100,
    "admin": 80,
    "operations": 60,
    "support": 40,
    "marketing": 20,
    CUSTOMER_ROLE: 0,
}


def is_admin_role(role: str | None) -> bool:
    return role in ADMIN_ROLES


def has_permission(role: str, module: str, action: str = "view") -> bool:
    """
    Check the permission matrix for `module` / `action` ("view" | "edit").
    """
    permissions = ROLE_PERMISSIONS.get(role)
    if not permissions:
        return False
    if "*" in permissions:
        return True
    if module in permissions:
        return True
    return f"{module}:{action}" in permissions


def can_modify_role(current_role: str, target_role: str) -> bool:
    """Staff may only manage roles strictly below their own level."""
    return ROLE_LEVELS.get(current_role, 0) > ROLE_LEVELS.get(target_role, 0)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from an access token.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub' (user id).
      3. Load the user row.

    Returns:
        User instance if authenticated, else None for guests.

    Raises:
        HTTPException(401): if token is invalid/expired or the user is gone.
    """
    if credentials is None:
        return None  # guest mode

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if user is None.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def require_permission(module: str, action: str = "view") -> Callable[..., User]:
    """
    Build a dependency that admits staff allowed to `action` on `module`.

    Usage:

        @router.get("", dependencies=[Depends(require_permission("orders"))])

        admin: User = Depends(require_permission("orders", "edit"))
    """

    def dependency(user: User = Depends(require_auth)) -> User:
        if not is_admin_role(user.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )
        if not has_permission(user.role, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"No permission for {module}:{action}",
            )
        return user

    return dependency
