# storefront/routers/products.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import ProductRead
from storefront.services.audit_service import AuditService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, AuditService(AuditRepository()))


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    gender: str | None = None,
):
    """
    List active products, newest first.

    - Public endpoint.
    - `gender` narrows to men / women / unisex (`all` is ignored).
    """
    return service.list_products(
        session,
        skip=skip,
        limit=limit,
        only_active=True,
        gender=None if gender == "all" else gender,
    )


@router.get("/slug/{slug}", response_model=ProductRead)
def get_product_by_slug(
    slug: str,
    session: Session = Depends(get_session),
):
    return service.get_by_slug(session, slug)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    """
    Get a single active product by id.
    """
    return service.get_public_product(session, product_id)


@router.get("/{product_id}/related", response_model=list[ProductRead])
def related_products(
    product_id: int,
    session: Session = Depends(get_session),
    limit: int = 4,
):
    """
    Same-gender products, trending first.
    """
    return service.related_products(session, product_id, limit)
