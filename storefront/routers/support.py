# storefront/routers/support.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.support_repo import SupportRepository
from storefront.schemas.support import TicketCreate, TicketRead
from storefront.services.audit_service import AuditService
from storefront.services.support_service import SupportService

router = APIRouter(prefix="/support", tags=["Support"])

repo = SupportRepository()
service = SupportService(repo, OrderRepository(), AuditService(AuditRepository()))


@router.post(
    "/tickets",
    response_model=TicketRead,
    status_code=status.HTTP_201_CREATED,
)
def open_ticket(
    payload: TicketCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Open a support ticket, optionally about one of the user's orders.
    """
    return service.open_ticket(session, current_user, payload)


@router.get("/tickets", response_model=list[TicketRead])
def list_my_tickets(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.list_mine(session, current_user.id)
