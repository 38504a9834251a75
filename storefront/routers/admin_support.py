# storefront/routers/admin_support.py
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.support_repo import SupportRepository
from storefront.schemas.support import TicketRead, TicketUpdate
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.support_service import SupportService

router = APIRouter(prefix="/admin/support", tags=["Admin Support"])

repo = SupportRepository()
service = SupportService(repo, OrderRepository(), AuditService(AuditRepository()))


@router.get(
    "",
    response_model=list[TicketRead],
    dependencies=[Depends(require_permission("support"))],
)
def list_tickets(
    session: Session = Depends(get_session),
    status: str | None = None,
    priority: str | None = None,
):
    """
    All tickets, newest first. `all` disables a filter.
    """
    return service.list_tickets(session, status_filter=status, priority=priority)


@router.patch("/{ticket_id}", response_model=TicketRead)
def update_ticket(
    ticket_id: int,
    payload: TicketUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("support", "edit")),
):
    """
    Triage a ticket: status, priority, assignee, internal notes.
    """
    return service.update_ticket(session, ticket_id, payload, admin, client_ip(request))
