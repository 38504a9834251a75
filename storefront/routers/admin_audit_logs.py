# storefront/routers/admin_audit_logs.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.repositories.audit_repo import AuditRepository
from storefront.schemas.audit import AuditLogRead
from storefront.services.audit_service import AuditService

router = APIRouter(prefix="/admin/audit-logs", tags=["Admin Audit Logs"])

repo = AuditRepository()
service = AuditService(repo)


@router.get(
    "",
    response_model=list[AuditLogRead],
    dependencies=[Depends(require_permission("logs"))],
)
def list_audit_logs(
    session: Session = Depends(get_session),
    action: str | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    """
    Back-office actions, newest first. `action=all` disables the filter.
    """
    return service.list_logs(
        session,
        action=None if action == "all" else action,
        skip=skip,
        limit=limit,
    )
