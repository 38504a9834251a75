# storefront/repositories/audit_repo.py
from sqlmodel import Session, select

from storefront.models.audit import AuditLog
from storefront.models.user import User


class AuditRepository:

    def add(self, session: Session, entry: AuditLog) -> AuditLog:
        """Stage an entry; it is committed with the change it describes."""
        session.add(entry)
        return entry

    def list_with_admins(
        self,
        session: Session,
        action: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[tuple[AuditLog, User | None]]:
        stmt = select(AuditLog, User).join(User, User.id == AuditLog.admin_id, isouter=True)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())
