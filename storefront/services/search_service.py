# storefront/services/search_service.py
from sqlalchemy import or_
from sqlmodel import Session

from storefront.models.product import Product
from storefront.repositories.product_repo import ProductRepository, scent_notes_text
from storefront.schemas.product import ProductRead
from storefront.schemas.search import (
    SearchFilters,
    SearchPagination,
    SearchResponse,
    SearchSuggestion,
)

NOTE_KEYWORDS = ["citrus", "woody", "floral", "oriental", "fresh", "spicy", "sweet", "musky"]

GENDERS = ["men", "women", "unisex"]

# Typo variants need enough characters to stay selective
MIN_FUZZY_LENGTH = 3


def term_variants(term: str) -> list[str]:
    """
    Typo-tolerant spellings of a search term: the term itself, the term
    without its last character and the term without its first character.
    Short terms are only matched as typed.
    """
    term = term.strip().lower()
    if not term:
        return []
    if len(term) < MIN_FUZZY_LENGTH:
        return [term]
    variants = [term, term[:-1], term[1:]]
    return list(dict.fromkeys(variants))


def fuzzy_condition(column, term: str):
    return or_(*[column.ilike(f"%{variant}%") for variant in term_variants(term)])


class SearchService:
    """
    Storefront search: fuzzy text match, facet filters, sorting,
    suggestions and filter options.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def _conditions(
        self,
        q: str | None,
        gender: str | None,
        brand: str | None,
        min_price: float | None,
        max_price: float | None,
        concentration: str | None,
        mood: str | None,
        occasion: str | None,
        season: str | None,
    ) -> list:
        conditions: list = [Product.is_active == True]  # noqa: E712
        notes_text = scent_notes_text()

        term = (q or "").strip()
        if term:
            conditions.append(
                or_(
                    fuzzy_condition(Product.name, term),
                    fuzzy_condition(Product.brand, term),
                    fuzzy_condition(Product.description, term),
                    notes_text.ilike(f"%{term}%"),
                )
            )

        if gender and gender != "all":
            conditions.append(Product.gender == gender)
        if brand:
            conditions.append(Product.brand.ilike(f"%{brand}%"))
        if min_price is not None:
            conditions.append(Product.price >= min_price)
        if max_price is not None:
            conditions.append(Product.price <= max_price)
        if concentration:
            conditions.append(Product.concentration == concentration)
        if mood:
            conditions.append(
                or_(Product.description.ilike(f"%{mood}%"), notes_text.ilike(f"%{mood}%"))
            )
        if occasion:
            conditions.append(Product.description.ilike(f"%{occasion}%"))
        if season:
            conditions.append(Product.description.ilike(f"%{season}%"))
        return conditions

    @staticmethod
    def _order_by(sort_by: str) -> list:
        if sort_by == "price-low":
            return [Product.price.asc(), Product.id.asc()]
        if sort_by == "price-high":
            return [Product.price.desc(), Product.id.asc()]
        if sort_by == "newest":
            return [Product.created_at.desc(), Product.id.desc()]
        # relevance / popular: trending first
        return [Product.is_trending.desc(), Product.created_at.desc(), Product.id.desc()]

    @staticmethod
    def _suggestions(q: str, brands: list[str]) -> list[SearchSuggestion]:
        needle = q.strip().lower()
        if not needle:
            return []
        suggestions = [
            SearchSuggestion(type="brand", text=b)
            for b in brands
            if needle in b.lower()
        ][:3]
        suggestions += [
            SearchSuggestion(type="note", text=n.capitalize())
            for n in NOTE_KEYWORDS
            if needle in n
        ][:3]
        return suggestions

    def search(
        self,
        session: Session,
        q: str | None = None,
        gender: str | None = None,
        brand: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        concentration: str | None = None,
        mood: str | None = None,
        occasion: str | None = None,
        season: str | None = None,
        sort_by: str = "relevance",
        limit: int = 20,
        offset: int = 0,
    ) -> SearchResponse:
        conditions = self._conditions(
            q, gender, brand, min_price, max_price, concentration, mood, occasion, season
        )

        products = self.repo.find(
            session,
            conditions,
            order_by=self._order_by(sort_by),
            limit=limit,
            offset=offset,
        )
        total = self.repo.count(session, conditions)
        brands = self.repo.distinct_brands(session)
        concentrations = self.repo.distinct_concentrations(session)

        return SearchResponse(
            products=[ProductRead.model_validate(p) for p in products],
            suggestions=self._suggestions(q or "", brands),
            pagination=SearchPagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + limit < total,
            ),
            filters=SearchFilters(
                brands=brands,
                concentrations=concentrations,
                genders=GENDERS,
            ),
        )
