# storefront/schemas/search.py
from typing import Literal

from sqlmodel import SQLModel

from storefront.schemas.product import ProductCard, ProductRead

SortBy = Literal["relevance", "popular", "price-low", "price-high", "newest"]


class SearchSuggestion(SQLModel):
    type: Literal["brand", "note"]
    text: str


class SearchPagination(SQLModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class SearchFilters(SQLModel):
    brands: list[str]
    concentrations: list[str]
    genders: list[str]


class SearchResponse(SQLModel):
    products: list[ProductRead]
    suggestions: list[SearchSuggestion]
    pagination: SearchPagination
    filters: SearchFilters


class RecommendationList(SQLModel):
    products: list[ProductCard]
