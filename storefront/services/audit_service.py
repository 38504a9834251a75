# storefront/services/audit_service.py
import logging
from typing import Any

from fastapi import Request
from sqlmodel import Session

from storefront.models.audit import AuditLog
from storefront.repositories.audit_repo import AuditRepository
from storefront.schemas.audit import AuditLogRead

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """
    Best-effort caller address: X-Forwarded-For (first hop), then X-Real-IP.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return "unknown"


class AuditService:
    """
    Records back-office actions.

    `record` only stages the entry; the caller's commit persists it together
    with the change it describes.
    """

    def __init__(self, repo: AuditRepository):
        self.repo = repo

    def record(
        self,
        session: Session,
        *,
        admin_id: int | None,
        action: str,
        entity_type: str | None = None,
        entity_id: Any = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            admin_id=admin_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
            ip_address=ip_address,
        )
        logger.info(
            "audit action=%s entity=%s:%s admin=%s",
            action,
            entity_type,
            entry.entity_id,
            admin_id,
        )
        return self.repo.add(session, entry)

    def list_logs(
        self,
        session: Session,
        action: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[AuditLogRead]:
        rows = self.repo.list_with_admins(session, action=action, skip=skip, limit=limit)
        return [
            AuditLogRead(
                id=log.id,
                admin_id=log.admin_id,
                admin_name=admin.name if admin else None,
                admin_email=admin.email if admin else None,
                action=log.action,
                entity_type=log.entity_type,
                entity_id=log.entity_id,
                details=log.details,
                ip_address=log.ip_address,
                created_at=log.created_at,
            )
            for log, admin in rows
        ]
