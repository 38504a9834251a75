# storefront/routers/admin_analytics.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.repositories.stats_repo import StatsRepository
from storefront.schemas.stats import AdminDashboardStats
from storefront.services.stats_service import StatsService

router = APIRouter(prefix="/admin/analytics", tags=["Admin Analytics"])

repo = StatsRepository()
service = StatsService(repo)


@router.get(
    "",
    response_model=AdminDashboardStats,
    dependencies=[Depends(require_permission("dashboard"))],
)
def get_admin_dashboard_stats(
    days: int = 30,
    top: int = 5,
    latest: int = 5,
    session: Session = Depends(get_session),
):
    """
    Aggregated statistics for the admin dashboard.

    Query params (optional):
      - days: size of the daily sales window, 1-365 (default 30)
      - top: number of top products
      - latest: number of latest orders
    """
    return service.get_admin_dashboard_stats(
        session=session,
        days=days,
        top_n_products=top,
        latest_n_orders=latest,
    )
