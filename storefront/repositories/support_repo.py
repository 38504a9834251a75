# storefront/repositories/support_repo.py
from sqlmodel import Session, select

from storefront.models.support import SupportTicket
from storefront.models.user import User


class SupportRepository:

    def get_by_id(self, session: Session, ticket_id: int) -> SupportTicket | None:
        return session.get(SupportTicket, ticket_id)

    def list_for_user(self, session: Session, user_id: int) -> list[SupportTicket]:
        stmt = (
            select(SupportTicket)
            .where(SupportTicket.user_id == user_id)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        )
        return list(session.exec(stmt).all())

    def list_tickets(
        self,
        session: Session,
        status: str | None = None,
        priority: str | None = None,
    ) -> list[SupportTicket]:
        stmt = select(SupportTicket)
        if status:
            stmt = stmt.where(SupportTicket.status == status)
        if priority:
            stmt = stmt.where(SupportTicket.priority == priority)
        stmt = stmt.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        return list(session.exec(stmt).all())

    def list_with_customers(
        self,
        session: Session,
        status: str | None = None,
        priority: str | None = None,
    ) -> list[tuple[SupportTicket, User | None]]:
        stmt = select(SupportTicket, User).join(
            User, User.id == SupportTicket.user_id, isouter=True
        )
        if status:
            stmt = stmt.where(SupportTicket.status == status)
        if priority:
            stmt = stmt.where(SupportTicket.priority == priority)
        stmt = stmt.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        return list(session.exec(stmt).all())

    def save(self, session: Session, ticket: SupportTicket) -> SupportTicket:
        session.add(ticket)
        session.commit()
        session.refresh(ticket)
        return ticket
