# storefront/services/product_service.py
import logging
import re

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.clock import utcnow
from storefront.core.storage_utils import delete_public_url, upload_to_storage
from storefront.models.product import Product
from storefront.models.user import User
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.audit_service import AuditService

logger = logging.getLogger(__name__)

# Fields a PATCH may not blank out
NON_NULLABLE_FIELDS = {"name", "brand", "price", "stock", "gender", "is_trending", "is_active"}

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProductService:
    """
    Business logic for the fragrance catalog.

    Responsibilities:
      - slug generation & uniqueness
      - storefront visibility (inactive products are hidden from shoppers)
      - soft vs. hard delete
      - image upload orchestration with Supabase Storage
      - audit trail for admin changes
    """

    def __init__(self, repo: ProductRepository, audit: AuditService):
        self.repo = repo
        self.audit = audit

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    def _ensure_unique_slug(
        self,
        session: Session,
        base_slug: str,
        exclude_id: int | None = None,
    ) -> str:
        """
        Ensure slug is unique by appending -1, -2, ... if needed.
        """
        slug = base_slug
        i = 1
        while True:
            existing = self.repo.get_by_slug(session, slug)
            if existing is None or existing.id == exclude_id:
                return slug
            slug = f"{base_slug}-{i}"
            i += 1

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if not file_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty file",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    # ----- Public catalog -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        gender: str | None = None,
    ) -> list[Product]:
        return self.repo.list_products(
            session,
            skip=skip,
            limit=limit,
            only_active=only_active,
            gender=gender,
        )

    def get_product(self, session: Session, product_id: int) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def get_public_product(self, session: Session, product_id: int) -> Product:
        """Like get_product, but disabled products are reported as missing."""
        product = self.get_product(session, product_id)
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def get_by_slug(self, session: Session, slug: str) -> Product:
        product = self.repo.get_by_slug(session, slug)
        if not product or not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def related_products(self, session: Session, product_id: int, limit: int = 4) -> list[Product]:
        """Same gender, not itself, trending first."""
        product = self.get_public_product(session, product_id)
        return self.repo.find(
            session,
            [
                Product.gender == product.gender,
                Product.id != product.id,
                Product.is_active == True,  # noqa: E712
            ],
            order_by=[Product.is_trending.desc(), Product.created_at.desc()],
            limit=limit,
        )

    # ----- Admin -----

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
        admin: User,
        ip_address: str | None = None,
    ) -> Product:
        """
        Create a new product with a unique slug.

        - If slug is provided => slugify & ensure unique.
        - Else => slugify from "<brand>-<name>" & ensure unique.
        """
        raw_slug = payload.slug or f"{payload.brand}-{payload.name}"
        slug = self._ensure_unique_slug(session, self._slugify(raw_slug))

        data = payload.model_dump(exclude={"slug", "scent_notes"})
        product = Product(
            **data,
            slug=slug,
            scent_notes=payload.scent_notes.model_dump() if payload.scent_notes else None,
        )
        product = self.repo.create(session, product)
        self.audit.record(
            session,
            admin_id=admin.id,
            action="product.create",
            entity_type="product",
            entity_id=product.id,
            details={"name": product.name, "brand": product.brand, "price": product.price},
            ip_address=ip_address,
        )
        session.commit()
        session.refresh(product)
        logger.info("Product %s created (%s)", product.id, product.slug)
        return product

    def update_product(
        self,
        session: Session,
        product_id: int,
        payload: ProductUpdate,
        admin: User,
        ip_address: str | None = None,
    ) -> Product:
        """
        Partial update of a product.

        - If slug is changed, enforce uniqueness.
        - The set of changed fields is audit-logged.
        """
        product = self.get_product(session, product_id)
        data = payload.model_dump(exclude_unset=True)
        changes: dict[str, object] = {}

        if "slug" in data and data["slug"] is not None:
            new_base_slug = self._slugify(data.pop("slug"))
            if new_base_slug != product.slug:
                product.slug = self._ensure_unique_slug(session, new_base_slug, exclude_id=product.id)
                changes["slug"] = product.slug
        else:
            data.pop("slug", None)

        if "scent_notes" in data:
            notes = payload.scent_notes
            product.scent_notes = notes.model_dump() if notes else None
            changes["scent_notes"] = product.scent_notes
            data.pop("scent_notes")

        for field, value in data.items():
            if field in NON_NULLABLE_FIELDS and value is None:
                continue
            if getattr(product, field) != value:
                setattr(product, field, value)
                changes[field] = value

        product.updated_at = utcnow()
        self.audit.record(
            session,
            admin_id=admin.id,
            action="product.update",
            entity_type="product",
            entity_id=product.id,
            details={"changes": changes},
            ip_address=ip_address,
        )
        return self.repo.update(session, product)

    def delete_product(
        self,
        session: Session,
        product_id: int,
        admin: User,
        hard: bool = False,
        ip_address: str | None = None,
    ) -> str:
        """
        Disable a product (default) or remove it for good.

        Hard delete is reserved for super_admin and also cleans up the image
        in Storage.

        Raises:
            HTTPException(403): hard delete by anyone but super_admin.
        """
        product = self.get_product(session, product_id)

        if hard:
            if admin.role != "super_admin":
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Only super admins can permanently delete products",
                )
            image_url = product.image_url
            self.audit.record(
                session,
                admin_id=admin.id,
                action="product.delete",
                entity_type="product",
                entity_id=product.id,
                details={"name": product.name, "hard": True},
                ip_address=ip_address,
            )
            self.repo.delete(session, product)
            if image_url:
                # Best-effort Storage cleanup; the row is already gone
                try:
                    delete_public_url(image_url)
                except Exception:
                    logger.warning("Could not delete image %s", image_url, exc_info=True)
            return "Product permanently deleted"

        product.is_active = False
        product.updated_at = utcnow()
        self.audit.record(
            session,
            admin_id=admin.id,
            action="product.disable",
            entity_type="product",
            entity_id=product.id,
            details={"name": product.name},
            ip_address=ip_address,
        )
        self.repo.update(session, product)
        return "Product disabled"

    def set_image(
        self,
        session: Session,
        product_id: int,
        content_type: str,
        file_bytes: bytes,
        admin: User,
        ip_address: str | None = None,
    ) -> Product:
        """
        Upload or replace the product image.

        - Validates content type + size.
        - Uploads to a deterministic path so the object is overwritten.
        """
        product = self.get_product(session, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        path = f"products/{product.id}/cover.{ext}"
        product.image_url = upload_to_storage(path, file_bytes, content_type)
        product.updated_at = utcnow()

        self.audit.record(
            session,
            admin_id=admin.id,
            action="product.image_upload",
            entity_type="product",
            entity_id=product.id,
            details={"path": path},
            ip_address=ip_address,
        )
        return self.repo.update(session, product)
