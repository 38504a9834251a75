# storefront/services/cart_service.py
import logging
from collections import OrderedDict
from typing import Iterable

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.cart_session import CartSession
from storefront.core.clock import utcnow
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartSummary,
    GuestCartLine,
)

logger = logging.getLogger(__name__)


def combine_lines(lines: Iterable[GuestCartLine]) -> "OrderedDict[int, int]":
    """
    Fold (product_id, quantity) lines into one quantity per product,
    keeping first-seen order.
    """
    combined: OrderedDict[int, int] = OrderedDict()
    for line in lines:
        combined[line.product_id] = combined.get(line.product_id, 0) + line.quantity
    return combined


class CartService:
    """
    Business logic for cart operations.

    Every public method takes the request's CartSession instead of reading
    cookies. Which cart is used:
      - authenticated: the user's cart (user_id)
      - guest: the cart bound to the session token; a token is minted on the
        first add-to-cart

    Responsibilities:
      - validate product existence and active flag
      - enforce quantity <= stock
      - one CartItem per (cart, product): quantities are summed
      - reconcile a guest cart into the user's cart on login
      - compute line totals and cart totals from current prices
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_valid_product(self, session: Session, product_id: int) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is inactive",
            )
        return product

    def _find_cart(self, session: Session, ctx: CartSession) -> Cart | None:
        if ctx.is_authenticated:
            return self.cart_repo.get_for_user(session, ctx.user_id)
        if ctx.token:
            return self.cart_repo.get_for_token(session, ctx.token)
        return None

    def _get_or_create_user_cart(self, session: Session, user_id: int) -> Cart:
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            cart = self.cart_repo.create(session, Cart(user_id=user_id))
        return cart

    def _get_or_create_cart(self, session: Session, ctx: CartSession) -> Cart:
        """
        Lazily create the cart for this request.

        Guests without a (known) token get a freshly minted one; the router
        turns `ctx.issued_token` into the cart cookie.
        """
        if ctx.is_authenticated:
            return self._get_or_create_user_cart(session, ctx.user_id)

        cart = self._find_cart(session, ctx)
        if cart is None:
            token = ctx.mint_token()
            cart = self.cart_repo.create(session, Cart(session_token=token))
        return cart

    def _add_quantity(self, session: Session, cart: Cart, product_id: int, quantity: int) -> CartItem:
        existing = self.cart_repo.get_item(session, cart.id, product_id)
        if existing:
            existing.quantity += quantity
            return self.cart_repo.save_item(session, existing)
        item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
        return self.cart_repo.save_item(session, item)

    def _touch(self, session: Session, cart: Cart) -> None:
        cart.updated_at = utcnow()
        self.cart_repo.touch(session, cart)

    def build_summary(self, session: Session, cart: Cart | None) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (joined with product, with line_total)
          - total_quantity
          - total_price
        """
        if cart is None:
            return CartSummary(cart_id=None, items=[], total_quantity=0, total_price=0.0)

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_price = 0.0

        for item, product in self.cart_repo.list_items_with_products(session, cart.id):
            line_total = round(item.quantity * product.price, 2)
            total_qty += item.quantity
            total_price += line_total

            item_reads.append(
                CartItemRead(
                    id=item.id,
                    product_id=product.id,
                    slug=product.slug,
                    name=product.name,
                    brand=product.brand,
                    price=product.price,
                    quantity=item.quantity,
                    image_url=product.image_url,
                    size=product.size,
                    scent_notes=product.scent_notes,
                    line_total=line_total,
                )
            )

        return CartSummary(
            cart_id=cart.id,
            items=item_reads,
            total_quantity=total_qty,
            total_price=round(total_price, 2),
        )

    # ---- public operations ----

    def get_cart(self, session: Session, ctx: CartSession) -> CartSummary:
        """Current cart; an empty summary when none exists yet."""
        return self.build_summary(session, self._find_cart(session, ctx))

    def get_user_cart(self, session: Session, user_id: int) -> CartSummary:
        return self.build_summary(session, self.cart_repo.get_for_user(session, user_id))

    def add_item(
        self,
        session: Session,
        ctx: CartSession,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the current cart.

        Rules:
          - product must exist (404) and be active (400)
          - existing_quantity + quantity <= stock (400)
          - adding a product already in the cart increments its line
        """
        product = self._get_valid_product(session, payload.product_id)

        cart = self._find_cart(session, ctx)
        existing_qty = 0
        if cart is not None:
            existing = self.cart_repo.get_item(session, cart.id, product.id)
            existing_qty = existing.quantity if existing else 0

        if existing_qty + payload.quantity > product.stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock available",
            )

        try:
            if cart is None:
                cart = self._get_or_create_cart(session, ctx)
            self._add_quantity(session, cart, product.id, payload.quantity)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.build_summary(session, cart)

    def update_item(
        self,
        session: Session,
        ctx: CartSession,
        product_id: int,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of a cart line.

        - quantity <= 0 removes the line
        - quantity above stock => 400
        """
        cart = self._find_cart(session, ctx)
        item = self.cart_repo.get_item(session, cart.id, product_id) if cart else None
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not in cart",
            )

        if payload.quantity > 0:
            product = self._get_valid_product(session, product_id)
            if payload.quantity > product.stock:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Not enough stock available",
                )

        try:
            if payload.quantity <= 0:
                self.cart_repo.delete_item(session, item)
            else:
                item.quantity = payload.quantity
                self.cart_repo.save_item(session, item)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.build_summary(session, cart)

    def remove_item(
        self,
        session: Session,
        ctx: CartSession,
        product_id: int,
    ) -> CartSummary:
        """
        Remove a product from the cart and return the updated summary.

        The cart row itself survives, so removing the last line leaves an
        empty cart.
        """
        cart = self._find_cart(session, ctx)
        item = self.cart_repo.get_item(session, cart.id, product_id) if cart else None
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not found in cart",
            )

        try:
            self.cart_repo.delete_item(session, item)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.build_summary(session, cart)

    def clear_cart(self, session: Session, ctx: CartSession) -> CartSummary:
        """
        Clear all items from the cart and return an empty summary.
        """
        cart = self._find_cart(session, ctx)
        if cart is None:
            return self.build_summary(session, None)

        try:
            self.cart_repo.clear(session, cart.id)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.build_summary(session, cart)

    # ---- reconciliation ----

    def merge_guest_items(
        self,
        session: Session,
        user_id: int,
        guest_items: Iterable[GuestCartLine],
    ) -> CartSummary:
        """
        Fold anonymous cart lines into the user's cart.

        Steps:
          1. Look up or create the user's cart.
          2. For every guest line: increment the matching CartItem, or
             insert a new one. Unknown or inactive products are skipped.
          3. Commit once and return the hydrated cart.

        An empty guest list changes nothing and still returns the user's cart.
        Stock is not checked here; checkout enforces it.
        """
        lines = combine_lines(guest_items)
        if not lines:
            return self.get_user_cart(session, user_id)

        try:
            cart = self._get_or_create_user_cart(session, user_id)
            self._merge_lines(session, cart, lines)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info("Merged %d guest line(s) into cart %s (user %s)", len(lines), cart.id, user_id)
        return self.build_summary(session, cart)

    def merge_guest_cart(self, session: Session, ctx: CartSession) -> CartSummary | None:
        """
        Login-time reconciliation of the cookie cart.

        `ctx` must already carry the freshly authenticated user id. The guest
        cart is folded into the user's cart, then deleted and its token
        retired, so replaying the old cookie cannot merge twice.

        Returns None when there was no guest cart to merge.
        """
        if not ctx.is_authenticated or not ctx.token:
            return None

        guest_cart = self.cart_repo.get_for_token(session, ctx.token)
        if guest_cart is None or guest_cart.user_id is not None:
            ctx.retire()
            return None

        guest_cart_id = guest_cart.id
        try:
            guest_items = self.cart_repo.list_items(session, guest_cart_id)
            lines = combine_lines(
                GuestCartLine(product_id=it.product_id, quantity=it.quantity)
                for it in guest_items
            )
            cart = self._get_or_create_user_cart(session, ctx.user_id)
            self._merge_lines(session, cart, lines)
            self.cart_repo.delete(session, guest_cart)
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        ctx.retire()
        logger.info(
            "Merged guest cart %s (%d line(s)) into cart %s (user %s)",
            guest_cart_id,
            len(lines),
            cart.id,
            ctx.user_id,
        )
        return self.build_summary(session, cart)

    def _merge_lines(self, session: Session, cart: Cart, lines: "OrderedDict[int, int]") -> None:
        for product_id, quantity in lines.items():
            product = self.product_repo.get_by_id(session, product_id)
            if product is None or not product.is_active:
                logger.warning("Skipping unavailable product %s during cart merge", product_id)
                continue
            self._add_quantity(session, cart, product_id, quantity)

    def sync_items(
        self,
        session: Session,
        user_id: int,
        items: Iterable[GuestCartLine],
    ) -> CartSummary:
        """
        Replace the user's cart lines with `items` (duplicates summed).
        Unknown or inactive products are dropped.
        """
        lines = combine_lines(items)

        try:
            cart = self._get_or_create_user_cart(session, user_id)
            self.cart_repo.clear(session, cart.id)
            for product_id, quantity in lines.items():
                product = self.product_repo.get_by_id(session, product_id)
                if product is None or not product.is_active:
                    logger.warning("Skipping unavailable product %s during cart sync", product_id)
                    continue
                self.cart_repo.save_item(
                    session,
                    CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity),
                )
            self._touch(session, cart)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.build_summary(session, cart)
