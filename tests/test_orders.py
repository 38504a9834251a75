# tests/test_orders.py
"""
Tests for checkout, order history and /admin/orders.
"""
from unittest.mock import patch

from sqlmodel import select

from storefront.models.audit import AuditLog
from storefront.models.cart import CartItem
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.routers import orders as orders_router

API = "/api/v1"

SHIPPING = {
    "full_name": "Sam Shopper",
    "phone": "+1 555 0100",
    "address_line1": "1 Rose Street",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
}


def add_to_cart(client, headers, product, quantity=1):
    response = client.post(
        f"{API}/cart/items",
        json={"product_id": product.id, "quantity": quantity},
        headers=headers,
    )
    assert response.status_code == 200
    return response


def checkout(client, headers, **payload):
    payload.setdefault("shipping_address", SHIPPING)
    return client.post(f"{API}/orders/checkout", json=payload, headers=headers)


class TestCheckout:

    def test_places_order_and_updates_stock_cart_and_coupon(
        self, client, session, customer_headers, make_product
    ):
        product = make_product(price=50.0, stock=5)
        coupon = Coupon(code="SPRING10", discount_type="percentage", discount_value=10)
        session.add(coupon)
        session.commit()
        add_to_cart(client, customer_headers, product, quantity=2)

        response = checkout(client, customer_headers, coupon_code="spring10")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        order = body["order"]
        assert body["order_id"] == order["id"]
        assert order["status"] == "pending"
        assert order["subtotal"] == 100.0
        assert order["discount_amount"] == 10.0
        assert order["total_amount"] == 90.0
        assert order["coupon_code"] == "SPRING10"
        assert order["shipping_address"]["city"] == "Springfield"
        assert [(i["product_id"], i["quantity"], i["price_at_purchase"]) for i in order["items"]] == [
            (product.id, 2, 50.0)
        ]

        session.refresh(product)
        session.refresh(coupon)
        assert product.stock == 3
        assert coupon.used_count == 1
        assert session.exec(select(CartItem)).all() == []

    def test_uses_default_address(self, client, customer_headers, make_product):
        client.post(
            f"{API}/addresses",
            json={**SHIPPING, "city": "Chicago", "is_default": True},
            headers=customer_headers,
        )
        add_to_cart(client, customer_headers, make_product())

        response = client.post(f"{API}/orders/checkout", json={}, headers=customer_headers)

        assert response.status_code == 201
        assert response.json()["order"]["shipping_address"]["city"] == "Chicago"

    def test_no_address_at_all(self, client, customer_headers, make_product):
        add_to_cart(client, customer_headers, make_product())
        response = client.post(f"{API}/orders/checkout", json={}, headers=customer_headers)
        assert response.status_code == 400

    def test_empty_cart(self, client, customer_headers):
        assert checkout(client, customer_headers).status_code == 400

    def test_stock_sold_out_after_adding(self, client, session, customer_headers, make_product):
        product = make_product(stock=2)
        add_to_cart(client, customer_headers, product, quantity=2)
        product.stock = 1
        session.add(product)
        session.commit()

        response = checkout(client, customer_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["items"][0]["product_id"] == str(product.id)
        assert session.exec(select(Order)).all() == []

    def test_failed_stock_update_rolls_everything_back(
        self, client, session, customer_headers, make_product
    ):
        product = make_product(stock=5)
        add_to_cart(client, customer_headers, product, quantity=1)

        with patch.object(orders_router.product_repo, "decrement_stock", return_value=False):
            response = checkout(client, customer_headers)

        assert response.status_code == 400
        assert session.exec(select(Order)).all() == []
        assert len(session.exec(select(CartItem)).all()) == 1
        session.refresh(product)
        assert product.stock == 5

    def test_requires_auth(self, client):
        assert client.post(f"{API}/orders/checkout", json={}).status_code == 401


class TestOrderHistory:

    def test_lists_own_orders_only(self, client, customer_headers, make_user, headers_for, make_product):
        add_to_cart(client, customer_headers, make_product())
        mine = checkout(client, customer_headers).json()["order_id"]

        other_headers = headers_for(make_user())
        add_to_cart(client, other_headers, make_product())
        theirs = checkout(client, other_headers).json()["order_id"]

        listed = client.get(f"{API}/orders", headers=customer_headers).json()
        assert [o["id"] for o in listed] == [mine]
        assert client.get(f"{API}/orders/{mine}", headers=customer_headers).status_code == 200
        assert client.get(f"{API}/orders/{theirs}", headers=customer_headers).status_code == 404


class TestAdminOrders:

    def place_order(self, client, customer_headers, make_product):
        add_to_cart(client, customer_headers, make_product())
        return checkout(client, customer_headers).json()["order_id"]

    def test_list_includes_customer(self, client, admin_headers, customer_headers, make_product):
        order_id = self.place_order(client, customer_headers, make_product)

        listed = client.get(f"{API}/admin/orders", params={"status": "all"}, headers=admin_headers).json()

        assert [o["id"] for o in listed] == [order_id]
        assert listed[0]["customer_email"] == "shopper@example.com"

    def test_status_update_is_audited(
        self, client, session, admin, admin_headers, customer_headers, make_product
    ):
        order_id = self.place_order(client, customer_headers, make_product)

        response = client.patch(
            f"{API}/admin/orders/{order_id}/status", json={"status": "shipped"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "status": "shipped"}
        log = session.exec(select(AuditLog).where(AuditLog.action == "order.status_update")).one()
        assert log.admin_id == admin.id
        assert log.details == {"previous_status": "pending", "new_status": "shipped"}

    def test_unknown_status(self, client, admin_headers, customer_headers, make_product):
        order_id = self.place_order(client, customer_headers, make_product)
        response = client.patch(
            f"{API}/admin/orders/{order_id}/status", json={"status": "lost"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_missing_order(self, client, admin_headers):
        response = client.patch(f"{API}/admin/orders/999/status", json={"status": "paid"}, headers=admin_headers)
        assert response.status_code == 404

    def test_bulk_update(self, client, session, admin_headers, customer_headers, make_product):
        first = self.place_order(client, customer_headers, make_product)
        second = self.place_order(client, customer_headers, make_product)

        response = client.post(
            f"{API}/admin/orders/bulk-update",
            json={"order_ids": [first, second, 999], "status": "confirmed"},
            headers=admin_headers,
        )

        assert response.json() == {"success": True, "updated": 2}
        session.expire_all()
        assert {o.status for o in session.exec(select(Order)).all()} == {"confirmed"}

    def test_bulk_update_needs_orders(self, client, admin_headers):
        response = client.post(
            f"{API}/admin/orders/bulk-update", json={"order_ids": [], "status": "paid"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_support_can_view_but_not_edit(
        self, client, make_user, headers_for, customer_headers, make_product
    ):
        order_id = self.place_order(client, customer_headers, make_product)
        headers = headers_for(make_user("support"))

        assert client.get(f"{API}/admin/orders/{order_id}", headers=headers).status_code == 200
        response = client.patch(
            f"{API}/admin/orders/{order_id}/status", json={"status": "paid"}, headers=headers
        )
        assert response.status_code == 403
