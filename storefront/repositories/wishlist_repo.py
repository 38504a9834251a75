# storefront/repositories/wishlist_repo.py
from sqlmodel import Session, select

from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem


class WishlistRepository:

    def list_for_user(
        self,
        session: Session,
        user_id: int,
    ) -> list[tuple[WishlistItem, Product]]:
        stmt = (
            select(WishlistItem, Product)
            .join(Product, Product.id == WishlistItem.product_id)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        )
        return list(session.exec(stmt).all())

    def get(self, session: Session, user_id: int, product_id: int) -> WishlistItem | None:
        stmt = select(WishlistItem).where(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        )
        return session.exec(stmt).first()

    def create(self, session: Session, item: WishlistItem) -> WishlistItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: WishlistItem) -> None:
        session.delete(item)
        session.commit()
