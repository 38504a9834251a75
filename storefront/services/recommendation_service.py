# storefront/services/recommendation_service.py
"""
Note-driven product recommendations.

All matching is a case-insensitive substring test against the text of a
product's scent notes, so "Sicilian Bergamot" matches "bergamot".
"""
import logging
from typing import Any, Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.models.product import Product
from storefront.repositories.product_repo import ProductRepository, notes_match_any

logger = logging.getLogger(__name__)

CART_RECOMMENDATION_LIMIT = 8
CART_RECOMMENDATION_MIN = 4

# "Pairs well with" table for cart recommendations
COMPLEMENTARY_NOTES: dict[str, list[str]] = {
    "bergamot": ["vanilla", "sandalwood", "amber"],
    "citrus": ["vanilla", "musk", "cedar"],
    "vanilla": ["bergamot", "rose", "sandalwood"],
    "rose": ["oud", "musk", "vanilla"],
    "oud": ["rose", "saffron", "amber"],
    "musk": ["citrus", "rose", "cedar"],
    "sandalwood": ["vanilla", "jasmine", "bergamot"],
    "jasmine": ["sandalwood", "musk", "amber"],
    "amber": ["oud", "jasmine", "bergamot"],
    "cedar": ["citrus", "musk", "leather"],
    "leather": ["cedar", "tobacco", "oud"],
    "tobacco": ["leather", "vanilla", "amber"],
    "saffron": ["oud", "rose", "vanilla"],
    "lavender": ["vanilla", "musk", "amber"],
    "patchouli": ["vanilla", "rose", "bergamot"],
    "vetiver": ["citrus", "amber", "sandalwood"],
}

SEASON_NOTES: dict[str, list[str]] = {
    "spring": ["floral", "green", "citrus", "light", "fresh"],
    "summer": ["citrus", "aquatic", "fresh", "light", "marine"],
    "fall": ["woody", "spicy", "amber", "warm", "oriental"],
    "winter": ["oriental", "woody", "vanilla", "amber", "musk"],
}

MOOD_NOTES: dict[str, list[str]] = {
    "fresh": ["citrus", "green", "aquatic", "mint", "bergamot"],
    "sensual": ["vanilla", "musk", "amber", "jasmine", "rose"],
    "woody": ["cedar", "sandalwood", "vetiver", "oud", "patchouli"],
    "spicy": ["pepper", "cinnamon", "cardamom", "ginger", "clove"],
    "sweet": ["vanilla", "caramel", "honey", "praline", "tonka"],
    "romantic": ["rose", "jasmine", "peony", "ylang", "tuberose"],
    "bold": ["oud", "leather", "tobacco", "incense", "smoky"],
    "mysterious": ["incense", "amber", "oud", "dark", "oriental"],
}

# occasion -> (notes, required concentration)
OCCASION_CRITERIA: dict[str, tuple[list[str], str | None]] = {
    "office": (["fresh", "light", "clean", "citrus"], "Eau de Toilette"),
    "date": (["sensual", "romantic", "vanilla", "musk", "rose"], None),
    "party": (["bold", "sweet", "spicy", "oriental"], None),
    "daily": (["fresh", "light", "citrus", "clean"], "Eau de Toilette"),
    "special": (["oud", "amber", "luxury", "rare"], "Parfum"),
    "beach": (["aquatic", "marine", "coconut", "fresh", "citrus"], None),
    "evening": (["oriental", "amber", "woody", "warm"], None),
}


def flatten_notes(scent_notes: dict[str, Any] | None) -> list[str]:
    """Top, middle and base notes as one list, in that order."""
    if not scent_notes:
        return []
    notes: list[str] = []
    for tier in ("top", "middle", "base"):
        notes.extend(str(n) for n in scent_notes.get(tier) or [])
    return notes


def complementary_notes(notes: Iterable[str]) -> list[str]:
    """
    Map notes through COMPLEMENTARY_NOTES. A note matches a key when it
    contains it. Result is de-duplicated, first-seen order.
    """
    found: dict[str, None] = {}
    for note in notes:
        lower = note.lower()
        for key, pairs in COMPLEMENTARY_NOTES.items():
            if key in lower:
                for pair in pairs:
                    found.setdefault(pair, None)
    return list(found)


class RecommendationService:

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def _by_notes(
        self,
        session: Session,
        notes: list[str],
        limit: int,
        extra: list | None = None,
    ) -> list[Product]:
        if not notes:
            return []
        conditions = [Product.is_active == True, notes_match_any(notes)]  # noqa: E712
        conditions += extra or []
        return self.repo.find(
            session,
            conditions,
            order_by=[Product.is_trending.desc(), Product.created_at.desc()],
            limit=limit,
        )

    def for_cart(self, session: Session, product_ids: list[int]) -> list[Product]:
        """
        "Pairs well with" picks for the products in a cart.

        Up to 8 products whose notes contain one of the first five
        complementary notes, excluding the cart itself; when that yields
        fewer than 4, random products fill up to 8.
        """
        if not product_ids:
            return []

        cart_products = self.repo.get_many(session, product_ids)
        notes: list[str] = []
        for p in cart_products:
            notes.extend(flatten_notes(p.scent_notes))

        pairs = complementary_notes(notes)[:5]
        picks: list[Product] = []
        if pairs:
            picks = self._by_notes(
                session,
                pairs,
                CART_RECOMMENDATION_LIMIT,
                extra=[Product.id.not_in(product_ids)],
            )

        if len(picks) < CART_RECOMMENDATION_MIN:
            exclude = list(product_ids) + [p.id for p in picks]
            picks += self.repo.random(session, exclude, CART_RECOMMENDATION_LIMIT - len(picks))

        return picks

    def trending(self, session: Session, limit: int = 6) -> list[Product]:
        return self.repo.find(
            session,
            [Product.is_trending == True, Product.is_active == True],  # noqa: E712
            order_by=[Product.created_at.desc()],
            limit=limit,
        )

    def for_season(self, session: Session, season: str, limit: int = 6) -> list[Product]:
        notes = SEASON_NOTES.get(season.lower())
        if notes is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown season. Expected one of: {', '.join(SEASON_NOTES)}",
            )
        return self._by_notes(session, notes, limit)

    def for_mood(self, session: Session, mood: str, limit: int = 6) -> list[Product]:
        notes = MOOD_NOTES.get(mood.lower(), MOOD_NOTES["fresh"])
        return self._by_notes(session, notes, limit)

    def for_occasion(self, session: Session, occasion: str, limit: int = 6) -> list[Product]:
        notes, concentration = OCCASION_CRITERIA.get(occasion.lower(), OCCASION_CRITERIA["daily"])
        extra = [Product.concentration == concentration] if concentration else []
        return self._by_notes(session, notes, limit, extra=extra)

    def similar(self, session: Session, product_id: int, limit: int = 4) -> list[Product]:
        """Products sharing one of the first five notes of `product_id`."""
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        notes = flatten_notes(product.scent_notes)[:5]
        return self._by_notes(session, notes, limit, extra=[Product.id != product.id])
