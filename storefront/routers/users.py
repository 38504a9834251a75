# storefront/routers/users.py
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from storefront.core.auth import require_auth, require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserRead, UserRoleUpdate, UserUpdate
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo, AuditService(AuditRepository()))


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.
    """
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Only `name` and `image` are editable.
    """
    return service.update_me(session, current_user, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_permission("users"))],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    role: str | None = None,
):
    """
    List users (staff with `users` permission).

    Pagination via skip/limit; `role=all` is the same as no filter.
    """
    return service.list_users(session, skip, limit, None if role == "all" else role)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_permission("users"))],
)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
):
    return service.get_user(session, user_id)


@router.patch("/{user_id}/role", response_model=UserRead)
def change_role(
    user_id: int,
    payload: UserRoleUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("users", "edit")),
):
    """
    Update a user's role.

    The caller must outrank both the user's current role and the new one.
    """
    return service.update_role(session, admin, user_id, payload, client_ip(request))
