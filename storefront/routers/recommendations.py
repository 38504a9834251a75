# storefront/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.product import Product
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import ProductCard
from storefront.schemas.search import RecommendationList
from storefront.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])

repo = ProductRepository()
service = RecommendationService(repo)


def _cards(products: list[Product]) -> RecommendationList:
    return RecommendationList(products=[ProductCard.model_validate(p) for p in products])


def _parse_ids(raw: str | None) -> list[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="product_ids must be a comma-separated list of integers",
        )


@router.get("/cart", response_model=RecommendationList)
def cart_recommendations(
    product_ids: str | None = None,
    session: Session = Depends(get_session),
):
    """
    Products that pair well with the cart (`product_ids=1,2,3`).
    """
    return _cards(service.for_cart(session, _parse_ids(product_ids)))


@router.get("/trending", response_model=RecommendationList)
def trending(
    limit: int = 6,
    session: Session = Depends(get_session),
):
    return _cards(service.trending(session, limit))


@router.get("/season/{season}", response_model=RecommendationList)
def by_season(
    season: str,
    limit: int = 6,
    session: Session = Depends(get_session),
):
    return _cards(service.for_season(session, season, limit))


@router.get("/mood/{mood}", response_model=RecommendationList)
def by_mood(
    mood: str,
    limit: int = 6,
    session: Session = Depends(get_session),
):
    return _cards(service.for_mood(session, mood, limit))


@router.get("/occasion/{occasion}", response_model=RecommendationList)
def by_occasion(
    occasion: str,
    limit: int = 6,
    session: Session = Depends(get_session),
):
    return _cards(service.for_occasion(session, occasion, limit))


@router.get("/similar/{product_id}", response_model=RecommendationList)
def similar(
    product_id: int,
    limit: int = 4,
    session: Session = Depends(get_session),
):
    """
    Products sharing notes with `product_id`.
    """
    return _cards(service.similar(session, product_id, limit))
