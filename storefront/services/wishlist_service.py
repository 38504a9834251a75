# storefront/services/wishlist_service.py
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.models.wishlist import WishlistItem
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.wishlist_repo import WishlistRepository
from storefront.schemas.product import ProductRead
from storefront.schemas.wishlist import WishlistItemRead


class WishlistService:

    def __init__(self, repo: WishlistRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def list_items(self, session: Session, user_id: int) -> list[WishlistItemRead]:
        return [
            WishlistItemRead(
                id=item.id,
                user_id=item.user_id,
                product_id=item.product_id,
                created_at=item.created_at,
                product=ProductRead.model_validate(product),
            )
            for item, product in self.repo.list_for_user(session, user_id)
        ]

    def add(self, session: Session, user_id: int, product_id: int) -> WishlistItemRead:
        """
        Raises:
            HTTPException(404): unknown product.
            HTTPException(409): product already on the wishlist.
        """
        product = self.product_repo.get_by_id(session, product_id)
        if product is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )

        if self.repo.get(session, user_id, product_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product already in wishlist",
            )

        try:
            item = self.repo.create(session, WishlistItem(user_id=user_id, product_id=product_id))
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Product already in wishlist",
            )

        return WishlistItemRead(
            id=item.id,
            user_id=item.user_id,
            product_id=item.product_id,
            created_at=item.created_at,
            product=ProductRead.model_validate(product),
        )

    def remove(self, session: Session, user_id: int, product_id: int) -> None:
        item = self.repo.get(session, user_id, product_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not in wishlist",
            )
        self.repo.delete(session, item)
