# storefront/routers/search.py
from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from storefront.database import get_session
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.search import SearchResponse, SortBy
from storefront.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["Search"])

repo = ProductRepository()
service = SearchService(repo)

SEARCH_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"


@router.get("", response_model=SearchResponse)
def search_products(
    response: Response,
    session: Session = Depends(get_session),
    q: str | None = None,
    gender: str | None = None,
    brand: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    concentration: str | None = None,
    mood: str | None = None,
    occasion: str | None = None,
    season: str | None = None,
    sort_by: SortBy = "relevance",
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    """
    Search the active catalog.

    - `q` is matched loosely against name, brand and description (small
      typos tolerated) and literally against the scent notes.
    - Results carry brand / note suggestions, pagination and the available
      filter options.
    """
    response.headers["Cache-Control"] = SEARCH_CACHE_CONTROL
    return service.search(
        session,
        q=q,
        gender=gender,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        concentration=concentration,
        mood=mood,
        occasion=occasion,
        season=season,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )
