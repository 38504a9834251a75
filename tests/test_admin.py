# tests/test_admin.py
"""
Tests for the back-office dashboard, audit trail and request helpers.
"""
from starlette.requests import Request

from storefront.models.order import Order, OrderItem
from storefront.services.audit_service import client_ip

API = "/api/v1"


def make_request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def make_order(session, user, product, status="pending", quantity=1) -> Order:
    order = Order(
        user_id=user.id,
        subtotal=product.price * quantity,
        total_amount=product.price * quantity,
        status=status,
    )
    session.add(order)
    session.commit()
    session.refresh(order)
    session.add(
        OrderItem(order_id=order.id, product_id=product.id, quantity=quantity, price_at_purchase=product.price)
    )
    session.commit()
    return order


class TestClientIp:

    def test_first_forwarded_hop(self):
        assert client_ip(make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})) == "203.0.113.7"

    def test_real_ip(self):
        assert client_ip(make_request({"X-Real-IP": " 198.51.100.2 "})) == "198.51.100.2"

    def test_unknown(self):
        assert client_ip(make_request({})) == "unknown"


class TestDashboard:

    def test_totals(self, client, session, admin_headers, customer, make_product):
        rose = make_product(name="Rose", price=100.0, stock=3)
        oud = make_product(name="Oud", price=40.0, stock=50)
        make_order(session, customer, rose, status="delivered")
        make_order(session, customer, oud, status="pending", quantity=2)
        make_order(session, customer, oud, status="cancelled")

        response = client.get(f"{API}/admin/analytics", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_customers"] == 1
        assert body["total_orders"] == 3
        assert body["pending_orders"] == 1
        # only delivered orders count as revenue
        assert body["total_revenue"] == 100.0
        assert [p["id"] for p in body["low_stock_products"]] == [rose.id]
        assert [p["product_id"] for p in body["top_products"]] == [rose.id, oud.id]
        assert body["top_products"][1]["total_quantity"] == 2
        assert len(body["latest_orders"]) == 3
        assert sum(d["order_count"] for d in body["daily_sales"]) == 2

    def test_days_out_of_range(self, client, admin_headers):
        assert client.get(f"{API}/admin/analytics", params={"days": 0}, headers=admin_headers).status_code == 400
        assert client.get(f"{API}/admin/analytics", params={"days": 366}, headers=admin_headers).status_code == 400

    def test_marketing_can_view_dashboard(self, client, make_user, headers_for):
        headers = headers_for(make_user("marketing"))
        assert client.get(f"{API}/admin/analytics", headers=headers).status_code == 200

    def test_customer_forbidden(self, client, customer_headers):
        assert client.get(f"{API}/admin/analytics", headers=customer_headers).status_code == 403


class TestAuditLogs:

    def test_actions_are_listed_with_admin(self, client, admin, admin_headers, customer):
        client.patch(
            f"{API}/users/{customer.id}/role",
            json={"role": "support"},
            headers={**admin_headers, "X-Forwarded-For": "203.0.113.7"},
        )
        client.post(
            f"{API}/admin/promotions", json={"code": "LOGME", "discount_value": 5}, headers=admin_headers
        )

        logs = client.get(f"{API}/admin/audit-logs", headers=admin_headers).json()

        assert [log["action"] for log in logs] == ["coupon.create", "user.role_change"]
        role_change = logs[1]
        assert role_change["admin_email"] == "admin@example.com"
        assert role_change["ip_address"] == "203.0.113.7"
        assert role_change["details"] == {"previous_role": "customer", "new_role": "support"}

    def test_filter_by_action(self, client, admin_headers):
        client.post(f"{API}/admin/promotions", json={"code": "ONE", "discount_value": 5}, headers=admin_headers)
        client.post(f"{API}/admin/promotions", json={"code": "TWO", "discount_value": 5}, headers=admin_headers)

        only = client.get(
            f"{API}/admin/audit-logs", params={"action": "coupon.create", "limit": 1}, headers=admin_headers
        ).json()
        everything = client.get(f"{API}/admin/audit-logs", params={"action": "all"}, headers=admin_headers).json()

        assert len(only) == 1
        assert only[0]["details"] == {"code": "TWO"}
        assert len(everything) == 2

    def test_operations_cannot_read_logs(self, client, make_user, headers_for):
        headers = headers_for(make_user("operations"))
        assert client.get(f"{API}/admin/audit-logs", headers=headers).status_code == 403
