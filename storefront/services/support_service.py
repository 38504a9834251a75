# storefront/services/support_service.py
from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.clock import utcnow
from storefront.models.support import SupportTicket
from storefront.models.user import User
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.support_repo import SupportRepository
from storefront.schemas.support import TicketCreate, TicketUpdate
from storefront.services.audit_service import AuditService


class SupportService:

    def __init__(
        self,
        repo: SupportRepository,
        order_repo: OrderRepository,
        audit: AuditService,
    ):
        self.repo = repo
        self.order_repo = order_repo
        self.audit = audit

    # ----- Customer -----

    def open_ticket(self, session: Session, user: User, payload: TicketCreate) -> SupportTicket:
        """
        Raises:
            HTTPException(404): order_id does not belong to the user.
        """
        if payload.order_id is not None:
            order = self.order_repo.get_by_id(session, payload.order_id)
            if order is None or order.user_id != user.id:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Order not found",
                )

        ticket = SupportTicket(
            user_id=user.id,
            order_id=payload.order_id,
            subject=payload.subject,
            message=payload.message,
        )
        return self.repo.save(session, ticket)

    def list_mine(self, session: Session, user_id: int) -> list[SupportTicket]:
        return self.repo.list_for_user(session, user_id)

    # ----- Admin -----

    def list_tickets(
        self,
        session: Session,
        status_filter: str | None = None,
        priority: str | None = None,
    ) -> list[SupportTicket]:
        return self.repo.list_tickets(
            session,
            status=None if status_filter in (None, "all") else status_filter,
            priority=None if priority in (None, "all") else priority,
        )

    def update_ticket(
        self,
        session: Session,
        ticket_id: int,
        payload: TicketUpdate,
        admin: User,
        ip_address: str | None = None,
    ) -> SupportTicket:
        ticket = self.repo.get_by_id(session, ticket_id)
        if ticket is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Ticket not found",
            )

        data = payload.model_dump(exclude_unset=True)
        for field, value in data.items():
            if value is None and field in ("status", "priority"):
                continue
            setattr(ticket, field, value)
        ticket.updated_at = utcnow()

        self.audit.record(
            session,
            admin_id=admin.id,
            action="support.update",
            entity_type="support_ticket",
            entity_id=ticket.id,
            details={"changes": data},
            ip_address=ip_address,
        )
        return self.repo.save(session, ticket)
