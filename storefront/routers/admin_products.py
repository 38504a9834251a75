# storefront/routers/admin_products.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from sqlmodel import Session

from storefront.core.auth import require_permission
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.audit_repo import AuditRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import (
    ProductCreate,
    ProductDeleteResult,
    ProductRead,
    ProductUpdate,
)
from storefront.services.audit_service import AuditService, client_ip
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/admin/products", tags=["Admin Products"])

repo = ProductRepository()
service = ProductService(repo, AuditService(AuditRepository()))


@router.get(
    "",
    response_model=list[ProductRead],
    dependencies=[Depends(require_permission("products"))],
)
def list_all_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 100,
    gender: str | None = None,
):
    """
    List every product, disabled ones included.
    """
    return service.list_products(
        session,
        skip=skip,
        limit=limit,
        only_active=False,
        gender=None if gender == "all" else gender,
    )


@router.get(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_permission("products"))],
)
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
):
    return service.get_product(session, product_id)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("products", "edit")),
):
    """
    Create a new product.

    The slug defaults to `brand-name` and is made unique.
    """
    return service.create_product(session, payload, admin, client_ip(request))


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    request: Request,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("products", "edit")),
):
    return service.update_product(session, product_id, payload, admin, client_ip(request))


@router.delete("/{product_id}", response_model=ProductDeleteResult)
def delete_product(
    product_id: int,
    request: Request,
    hard: bool = False,
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("products", "edit")),
):
    """
    Disable a product, or remove it for good with `?hard=true`.

    Hard delete is limited to super admins.
    """
    message = service.delete_product(session, product_id, admin, hard, client_ip(request))
    return ProductDeleteResult(message=message)


@router.post(
    "/{product_id}/image",
    response_model=ProductRead,
    summary="Upload or replace the image of a product",
)
def upload_image(
    product_id: int,
    request: Request,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    admin: User = Depends(require_permission("products", "edit")),
):
    """
    Upload a new image for the product.

    - Accepts JPEG, PNG, WEBP.
    - Overwrites any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.set_image(
        session=session,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
        admin=admin,
        ip_address=client_ip(request),
    )
