# storefront/services/user_service.py
from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.auth import can_modify_role
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserUpdate, UserRoleUpdate
from storefront.services.audit_service import AuditService


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - enforce app rules (no email change, role hierarchy)
      - orchestrate repository operations
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository, audit: AuditService):
        self.repo = repo
        self.audit = audit

    # ----- Self profile -----

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update for profile edits.
        Only `name` and `image` are editable.
        """
        data = payload.model_dump(exclude_unset=True)
        if "name" in data and data["name"] is not None:
            current_user.name = data["name"]
        if "image" in data:
            current_user.image = data["image"]

        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> list[User]:
        """List users with pagination (admin only)."""
        return self.repo.list_users(session, skip=skip, limit=limit, role=role)

    def get_user(self, session: Session, user_id: int) -> User:
        """
        Get a user by id (admin only).

        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def update_role(
        self,
        session: Session,
        actor: User,
        user_id: int,
        payload: UserRoleUpdate,
        ip_address: str | None = None,
    ) -> User:
        """
        Change a user's role.

        The acting staff member must outrank both the user's current role and
        the requested one, and cannot change their own role.

        Raises:
            HTTPException(404): user not found.
            HTTPException(403): hierarchy violation.
        """
        user = self.get_user(session, user_id)

        if user.id == actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot change your own role",
            )

        if not can_modify_role(actor.role, user.role) or not can_modify_role(actor.role, payload.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient privileges to assign this role",
            )

        previous = user.role
        user.role = payload.role
        self.audit.record(
            session,
            admin_id=actor.id,
            action="user.role_change",
            entity_type="user",
            entity_id=user.id,
            details={"previous_role": previous, "new_role": payload.role},
            ip_address=ip_address,
        )
        return self.repo.update(session, user)
