# storefront/repositories/user_repo.py
from datetime import datetime

from sqlalchemy import delete
from sqlmodel import Session, select

from storefront.models.user import PasswordResetToken, User


class UserRepository:
    """
    Data access layer for User and PasswordResetToken.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique (lower-cased) email, or None if not found."""
        stmt = select(User).where(User.email == email.lower())
        return session.exec(stmt).first()

    def list_users(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        role: str | None = None,
    ) -> list[User]:
        """
        Paginated user listing, newest first.

        Args:
            skip: offset rows (for paging)
            limit: max number of rows returned
            role: optional exact role filter

        Returns:
            List[User]
        """
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def list_for_export(
        self,
        session: Session,
        start: datetime | None = None,
        end: datetime | None = None,
        role: str | None = None,
    ) -> list[User]:
        stmt = select(User)
        if start is not None:
            stmt = stmt.where(User.created_at >= start)
        if end is not None:
            stmt = stmt.where(User.created_at <= end)
        if role:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, user: User) -> User:
        """Insert a new User and return the persisted row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    # ----- Password reset tokens -----

    def create_reset_token(
        self,
        session: Session,
        token: PasswordResetToken,
    ) -> PasswordResetToken:
        session.add(token)
        session.commit()
        session.refresh(token)
        return token

    def get_reset_token(self, session: Session, token_hash: str) -> PasswordResetToken | None:
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token_hash)
        return session.exec(stmt).first()

    def delete_reset_tokens(self, session: Session, user_id: int) -> None:
        """Remove every pending reset token of a user (no commit)."""
        stmt = delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        session.exec(stmt)
