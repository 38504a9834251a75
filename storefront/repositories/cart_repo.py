# storefront/repositories/cart_repo.py
from sqlalchemy import delete
from sqlmodel import Session, select

from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product


class CartRepository:
    """
    Data access layer for carts and cart_items.

    NOTE:
      - No commits here; add/merge/sync touch several rows and the service
        commits once per operation.
    """

    # ---- Carts ----

    def get_by_id(self, session: Session, cart_id: int) -> Cart | None:
        return session.get(Cart, cart_id)

    def get_for_user(self, session: Session, user_id: int) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def get_for_token(self, session: Session, token: str) -> Cart | None:
        stmt = select(Cart).where(Cart.session_token == token)
        return session.exec(stmt).first()

    def create(self, session: Session, cart: Cart) -> Cart:
        """Insert a cart and flush so its id is populated."""
        session.add(cart)
        session.flush()
        session.refresh(cart)
        return cart

    def touch(self, session: Session, cart: Cart) -> None:
        session.add(cart)

    def delete(self, session: Session, cart: Cart) -> None:
        self.clear(session, cart.id)
        session.delete(cart)
        session.flush()

    # ---- Items ----

    def list_items(self, session: Session, cart_id: int) -> list[CartItem]:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id)
        return list(session.exec(stmt).all())

    def list_items_with_products(
        self,
        session: Session,
        cart_id: int,
    ) -> list[tuple[CartItem, Product]]:
        """Cart lines joined with their product, in insertion order."""
        stmt = (
            select(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.id)
        )
        return list(session.exec(stmt).all())

    def get_item(self, session: Session, cart_id: int, product_id: int) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id,
        )
        return session.exec(stmt).first()

    def save_item(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.flush()
        return item

    def delete_item(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.flush()

    def clear(self, session: Session, cart_id: int) -> None:
        session.exec(delete(CartItem).where(CartItem.cart_id == cart_id))  # type: ignore[call-overload]
        session.flush()
