# storefront/services/order_service.py
import logging
from typing import Any

from fastapi import HTTPException, status
from sqlmodel import Session

from storefront.core.clock import utcnow
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.repositories.address_repo import AddressRepository
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.coupon_repo import CouponRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.order import (
    ORDER_STATUSES,
    BulkStatusUpdate,
    CheckoutRequest,
    OrderItemRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from storefront.services.audit_service import AuditService
from storefront.services.coupon_service import CouponService, compute_discount

logger = logging.getLogger(__name__)

ADDRESS_SNAPSHOT_FIELDS = (
    "full_name",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create order from cart in one transaction
      - Validate cart items against products (exists, active, stock)
      - Compute subtotal, coupon discount and total
      - Deduct stock with a conditional update
      - Clear cart after success
      - Status management (admin)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        address_repo: AddressRepository,
        coupon_repo: CouponRepository,
        user_repo: UserRepository,
        coupon_service: CouponService,
        audit: AuditService,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.address_repo = address_repo
        self.coupon_repo = coupon_repo
        self.user_repo = user_repo
        self.coupon_service = coupon_service
        self.audit = audit

    # -------- User-facing operations --------

    def _resolve_shipping_address(
        self,
        session: Session,
        user_id: int,
        payload: CheckoutRequest,
    ) -> dict[str, Any]:
        if payload.address_id is not None:
            address = self.address_repo.get_for_user(session, user_id, payload.address_id)
            if address is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Address not found",
                )
        elif payload.shipping_address is not None:
            return payload.shipping_address.model_dump()
        else:
            address = self.address_repo.get_default(session, user_id)
            if address is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Shipping address is required",
                )
        return {field: getattr(address, field) for field in ADDRESS_SNAPSHOT_FIELDS}

    def checkout(
        self,
        session: Session,
        user_id: int,
        payload: CheckoutRequest,
    ) -> OrderWithItemsRead:
        """
        Convert the current user's cart into an Order.

        Steps (single transaction, one commit):
          1. Load cart items; error if empty.
          2. For each cart item: product exists, is active, has stock.
          3. Compute subtotal from current prices, apply coupon.
          4. Create Order row (status='pending') + OrderItem rows.
          5. Deduct stock (conditional UPDATE ... WHERE stock >= qty).
          6. Count coupon usage.
          7. Clear cart.
          8. Commit; any failure rolls everything back.
        """
        shipping_address = self._resolve_shipping_address(session, user_id, payload)

        # 1) Load cart
        cart = self.cart_repo.get_for_user(session, user_id)
        cart_items = self.cart_repo.list_items(session, cart.id) if cart else []
        if not cart_items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        # 2) Validate each cart item vs product
        errors: list[dict[str, str]] = []
        product_map: dict[int, Product] = {}

        for ci in cart_items:
            product = self.product_repo.get_by_id(session, ci.product_id)

            if not product:
                errors.append({"product_id": str(ci.product_id), "reason": "Product not found"})
                continue

            product_map[ci.product_id] = product

            if not product.is_active:
                errors.append({"product_id": str(ci.product_id), "reason": "Product is inactive"})
                continue

            if ci.quantity > product.stock:
                errors.append(
                    {
                        "product_id": str(ci.product_id),
                        "reason": f"Insufficient stock (have {product.stock}, requested {ci.quantity})",
                    }
                )

        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Cart validation failed", "items": errors},
            )

        # 3) Totals
        subtotal = round(
            sum(ci.quantity * product_map[ci.product_id].price for ci in cart_items),
            2,
        )

        coupon = None
        discount = 0.0
        if payload.coupon_code:
            coupon = self.coupon_service.get_redeemable(session, payload.coupon_code, subtotal)
            discount = compute_discount(coupon.discount_type, coupon.discount_value, subtotal)

        total_amount = round(subtotal - discount, 2)

        try:
            # 4) Order + items
            order = self.order_repo.create_order(
                session,
                Order(
                    user_id=user_id,
                    subtotal=subtotal,
                    discount_amount=discount,
                    total_amount=total_amount,
                    coupon_code=coupon.code if coupon else None,
                    status="pending",
                    shipping_address=shipping_address,
                ),
            )

            order_items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=ci.product_id,
                        quantity=ci.quantity,
                        price_at_purchase=product_map[ci.product_id].price,
                    )
                    for ci in cart_items
                ],
            )

            # 5) Deduct stock; a concurrent checkout may have taken it
            for ci in cart_items:
                if not self.product_repo.decrement_stock(session, ci.product_id, ci.quantity):
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Insufficient stock for product {ci.product_id}",
                    )

            # 6) Coupon usage
            if coupon is not None and not self.coupon_repo.increment_usage(session, coupon.id):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Coupon usage limit reached",
                )

            # 7) Clear cart
            self.cart_repo.clear(session, cart.id)
            cart.updated_at = utcnow()
            self.cart_repo.touch(session, cart)

            # 8) Commit transaction
            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info(
            "Order %s placed by user %s: %d item(s), total %.2f",
            order.id,
            user_id,
            len(order_items),
            total_amount,
        )
        return self.get_user_order(session, user_id, order.id)

    def list_user_orders(
        self,
        session: Session,
        user_id: int,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderWithItemsRead]:
        """
        List orders for the given user, newest first, with items.
        """
        orders = self.order_repo.list_for_user(session, user_id, skip, limit)
        return self._build_many(session, orders)

    def get_user_order(
        self,
        session: Session,
        user_id: int,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Get a single order for the user, including items.

        - 404 if order not found or does not belong to this user.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        return self._build_order_with_items_dto(session, order)

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status_filter: str | None = None,
    ) -> list[OrderWithItemsRead]:
        """
        List all orders (admin only).
        """
        if status_filter == "all":
            status_filter = None
        orders = self.order_repo.list_all(session, skip, limit, status=status_filter)
        return self._build_many(session, orders, with_customer=True)

    def get_order_admin(
        self,
        session: Session,
        order_id: int,
    ) -> OrderWithItemsRead:
        """
        Get any order with items and customer (admin only).
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return self._build_order_with_items_dto(session, order, with_customer=True)

    @staticmethod
    def _validate_status(value: str) -> str:
        if value not in ORDER_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status. Expected one of: {', '.join(ORDER_STATUSES)}",
            )
        return value

    def update_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
        admin: User,
        ip_address: str | None = None,
    ) -> Order:
        """
        Admin-only status update.

        Any of the known statuses may be set; unknown values raise 400.
        The previous and new status are audit-logged.
        """
        new = self._validate_status(payload.status)

        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        previous = order.status
        order.status = new
        order.updated_at = utcnow()
        self.order_repo.update_order(session, order)
        self.audit.record(
            session,
            admin_id=admin.id,
            action="order.status_update",
            entity_type="order",
            entity_id=order.id,
            details={"previous_status": previous, "new_status": new},
            ip_address=ip_address,
        )
        session.commit()
        session.refresh(order)
        return order

    def bulk_update_status(
        self,
        session: Session,
        payload: BulkStatusUpdate,
        admin: User,
        ip_address: str | None = None,
    ) -> int:
        """
        Set the same status on several orders. Returns the number updated.
        """
        if not payload.order_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No orders selected",
            )
        new = self._validate_status(payload.status)

        orders = self.order_repo.get_many(session, set(payload.order_ids))
        now = utcnow()
        for order in orders:
            order.status = new
            order.updated_at = now
            self.order_repo.update_order(session, order)

        self.audit.record(
            session,
            admin_id=admin.id,
            action="order.bulk_status_update",
            entity_type="order",
            entity_id="bulk",
            details={"order_ids": sorted(o.id for o in orders), "new_status": new},
            ip_address=ip_address,
        )
        session.commit()
        logger.info("Bulk status update to %s for %d order(s)", new, len(orders))
        return len(orders)

    # -------- Helper DTO builder --------

    def _build_many(
        self,
        session: Session,
        orders: list[Order],
        with_customer: bool = False,
    ) -> list[OrderWithItemsRead]:
        return [self._build_order_with_items_dto(session, o, with_customer) for o in orders]

    def _build_order_with_items_dto(
        self,
        session: Session,
        order: Order,
        with_customer: bool = False,
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        item_dtos: list[OrderItemRead] = []
        for it, product in self.order_repo.list_items_for_order(session, order.id):
            item_dtos.append(
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    product_id=it.product_id,
                    product_name=product.name if product else None,
                    product_slug=product.slug if product else None,
                    image_url=product.image_url if product else None,
                    quantity=it.quantity,
                    price_at_purchase=it.price_at_purchase,
                    line_total=round(it.quantity * it.price_at_purchase, 2),
                )
            )

        customer = None
        if with_customer and order.user_id is not None:
            customer = self.user_repo.get_by_id(session, order.user_id)

        return OrderWithItemsRead(
            id=order.id,
            user_id=order.user_id,
            subtotal=order.subtotal,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            coupon_code=order.coupon_code,
            status=order.status,
            stripe_payment_id=order.stripe_payment_id,
            shipping_address=order.shipping_address,
            created_at=order.created_at,
            items=item_dtos,
            customer_name=customer.name if customer else None,
            customer_email=customer.email if customer else None,
        )
