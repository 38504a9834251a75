# tests/test_cart.py
"""
Tests for /cart: guest and account carts, quantity rules and reconciliation.
"""
from unittest.mock import patch

import pytest

from storefront.routers import cart as cart_router
from storefront.schemas.cart import GuestCartLine
from storefront.services.cart_service import combine_lines

API = "/api/v1"


def quantities(summary: dict) -> dict[int, int]:
    return {item["product_id"]: item["quantity"] for item in summary["items"]}


class TestCombineLines:

    def test_duplicates_are_summed_in_first_seen_order(self):
        lines = [
            GuestCartLine(product_id=3, quantity=1),
            GuestCartLine(product_id=1, quantity=2),
            GuestCartLine(product_id=3, quantity=4),
        ]
        combined = combine_lines(lines)
        assert list(combined.items()) == [(3, 5), (1, 2)]

    def test_empty(self):
        assert combine_lines([]) == {}


class TestGuestCart:

    def test_empty_cart_without_cookie(self, client):
        response = client.get(f"{API}/cart")
        assert response.status_code == 200
        assert response.json() == {"cart_id": None, "items": [], "total_quantity": 0, "total_price": 0.0}

    def test_first_add_sets_cart_cookie(self, client, make_product):
        product = make_product(price=42.5)

        response = client.post(f"{API}/cart/items", json={"product_id": product.id})

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"].lower()
        assert "cart_session=" in set_cookie
        assert "httponly" in set_cookie
        assert "path=/" in set_cookie
        assert "max-age=2592000" in set_cookie

        body = response.json()
        assert body["total_quantity"] == 1
        assert body["total_price"] == 42.5

    def test_same_product_twice_increments_line(self, client, make_product):
        product = make_product()

        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 1})
        second = client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2})

        assert second.headers.get("set-cookie") is None
        body = second.json()
        assert len(body["items"]) == 1
        assert body["items"][0]["quantity"] == 3

    def test_totals_use_current_prices(self, client, make_product):
        a = make_product(price=10.0)
        b = make_product(price=25.25)

        client.post(f"{API}/cart/items", json={"product_id": a.id, "quantity": 3})
        body = client.post(f"{API}/cart/items", json={"product_id": b.id, "quantity": 2}).json()

        assert body["total_quantity"] == 5
        assert body["total_price"] == 80.5
        lines = {item["product_id"]: item["line_total"] for item in body["items"]}
        assert lines == {a.id: 30.0, b.id: 50.5}


class TestCartRules:

    def test_quantity_cannot_exceed_stock(self, client, customer_headers, make_product):
        product = make_product(stock=3)

        ok = client.post(
            f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers
        )
        too_many = client.post(
            f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers
        )

        assert ok.status_code == 200
        assert too_many.status_code == 400

    def test_unknown_product_is_404(self, client, customer_headers):
        response = client.post(f"{API}/cart/items", json={"product_id": 999}, headers=customer_headers)
        assert response.status_code == 404

    def test_inactive_product_is_rejected(self, client, customer_headers, make_product):
        product = make_product(is_active=False)
        response = client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=customer_headers)
        assert response.status_code == 400

    def test_zero_quantity_removes_line(self, client, customer_headers, make_product):
        product = make_product()
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers)

        response = client.patch(
            f"{API}/cart/items/{product.id}", json={"quantity": 0}, headers=customer_headers
        )

        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_update_quantity(self, client, customer_headers, make_product):
        product = make_product()
        client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=customer_headers)

        response = client.patch(
            f"{API}/cart/items/{product.id}", json={"quantity": 4}, headers=customer_headers
        )
        assert quantities(response.json()) == {product.id: 4}

    def test_removing_last_item_leaves_empty_cart(self, client, customer_headers, make_product):
        product = make_product()
        added = client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=customer_headers)

        response = client.delete(f"{API}/cart/items/{product.id}", headers=customer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["cart_id"] == added.json()["cart_id"]
        assert body["items"] == []
        assert body["total_price"] == 0.0

    def test_removing_missing_item_is_404(self, client, customer_headers, make_product):
        product = make_product()
        response = client.delete(f"{API}/cart/items/{product.id}", headers=customer_headers)
        assert response.status_code == 404

    def test_clear_cart(self, client, customer_headers, make_product):
        for _ in range(3):
            client.post(f"{API}/cart/items", json={"product_id": make_product().id}, headers=customer_headers)

        response = client.delete(f"{API}/cart", headers=customer_headers)
        assert response.json()["items"] == []

    def test_failed_remove_keeps_line(self, client, customer_headers, make_product):
        product = make_product()
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers)

        with patch.object(cart_router.cart_repo, "delete_item", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                client.delete(f"{API}/cart/items/{product.id}", headers=customer_headers)

        cart = client.get(f"{API}/cart", headers=customer_headers).json()
        assert quantities(cart) == {product.id: 2}

    def test_failed_clear_keeps_lines(self, client, customer_headers, make_product):
        a = make_product()
        b = make_product()
        for product in (a, b):
            client.post(f"{API}/cart/items", json={"product_id": product.id}, headers=customer_headers)

        with patch.object(cart_router.cart_repo, "touch", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                client.delete(f"{API}/cart", headers=customer_headers)

        cart = client.get(f"{API}/cart", headers=customer_headers).json()
        assert quantities(cart) == {a.id: 1, b.id: 1}

    def test_failed_update_keeps_quantity(self, client, customer_headers, make_product):
        product = make_product()
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 2}, headers=customer_headers)

        with patch.object(cart_router.cart_repo, "touch", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                client.patch(
                    f"{API}/cart/items/{product.id}", json={"quantity": 5}, headers=customer_headers
                )

        cart = client.get(f"{API}/cart", headers=customer_headers).json()
        assert quantities(cart) == {product.id: 2}


class TestReconciliation:

    def test_merge_sums_existing_lines(self, client, customer_headers, make_product):
        a = make_product()
        b = make_product()
        client.post(f"{API}/cart/items", json={"product_id": a.id, "quantity": 2}, headers=customer_headers)

        response = client.post(
            f"{API}/cart/merge",
            json={"guest_items": [{"product_id": a.id, "quantity": 1}, {"product_id": b.id, "quantity": 3}]},
            headers=customer_headers,
        )

        assert response.status_code == 200
        assert quantities(response.json()) == {a.id: 3, b.id: 3}

    def test_merge_keeps_lines_missing_from_guest_cart(self, client, customer_headers, make_product):
        a = make_product()
        b = make_product()
        client.post(f"{API}/cart/items", json={"product_id": a.id, "quantity": 2}, headers=customer_headers)

        response = client.post(
            f"{API}/cart/merge",
            json={"guest_items": [{"product_id": b.id, "quantity": 1}]},
            headers=customer_headers,
        )

        assert quantities(response.json()) == {a.id: 2, b.id: 1}

    @pytest.mark.parametrize(
        "user_lines, guest_lines, expected",
        [
            ({}, {"a": 2}, {"a": 2}),
            ({"a": 1}, {"a": 1, "b": 1}, {"a": 2, "b": 1}),
            ({"a": 1, "b": 4}, {"b": 1}, {"a": 1, "b": 5}),
            ({"a": 3}, {"b": 2, "c": 1}, {"a": 3, "b": 2, "c": 1}),
        ],
    )
    def test_merge_is_per_product_sum(
        self, client, customer_headers, make_product, user_lines, guest_lines, expected
    ):
        products = {key: make_product() for key in "abc"}
        for key, quantity in user_lines.items():
            client.post(
                f"{API}/cart/items",
                json={"product_id": products[key].id, "quantity": quantity},
                headers=customer_headers,
            )

        response = client.post(
            f"{API}/cart/merge",
            json={"guest_items": [{"product_id": products[k].id, "quantity": q} for k, q in guest_lines.items()]},
            headers=customer_headers,
        )

        assert quantities(response.json()) == {products[k].id: q for k, q in expected.items()}

    def test_merge_with_no_items_changes_nothing(self, client, customer_headers, make_product):
        a = make_product()
        client.post(f"{API}/cart/items", json={"product_id": a.id, "quantity": 2}, headers=customer_headers)

        response = client.post(f"{API}/cart/merge", json={"guest_items": []}, headers=customer_headers)

        assert quantities(response.json()) == {a.id: 2}

    def test_merge_skips_unknown_products(self, client, customer_headers, make_product):
        a = make_product()
        response = client.post(
            f"{API}/cart/merge",
            json={"guest_items": [{"product_id": 12345, "quantity": 1}, {"product_id": a.id, "quantity": 1}]},
            headers=customer_headers,
        )
        assert quantities(response.json()) == {a.id: 1}

    def test_merge_requires_auth(self, client):
        response = client.post(f"{API}/cart/merge", json={"guest_items": []})
        assert response.status_code == 401

    def test_sync_replaces_lines(self, client, customer_headers, make_product):
        a = make_product()
        b = make_product()
        client.post(f"{API}/cart/items", json={"product_id": a.id, "quantity": 5}, headers=customer_headers)

        response = client.put(
            f"{API}/cart/sync",
            json={"items": [{"product_id": b.id, "quantity": 1}, {"product_id": b.id, "quantity": 2}]},
            headers=customer_headers,
        )

        assert quantities(response.json()) == {b.id: 3}
        assert quantities(client.get(f"{API}/cart/sync", headers=customer_headers).json()) == {b.id: 3}

    def test_replayed_guest_cookie_does_not_merge_twice(self, client, customer_headers, make_product):
        product = make_product()
        client.post(f"{API}/cart/items", json={"product_id": product.id, "quantity": 1})
        guest_token = client.cookies.get("cart_session")

        login = {"email": "shopper@example.com", "password": "password123"}
        client.post(f"{API}/auth/login", json=login)
        client.cookies.set("cart_session", guest_token)
        client.post(f"{API}/auth/login", json=login)

        cart = client.get(f"{API}/cart", headers=customer_headers).json()
        assert quantities(cart) == {product.id: 1}
