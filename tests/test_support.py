# tests/test_support.py
"""
Tests for /support and /admin/support.
"""
from sqlmodel import select

from storefront.models.audit import AuditLog
from storefront.models.order import Order

API = "/api/v1"

TICKET = {"subject": "Leaking bottle", "message": "The atomiser arrived cracked."}


def place_order(session, user) -> Order:
    order = Order(user_id=user.id, subtotal=50.0, total_amount=50.0, status="delivered")
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


class TestCustomerTickets:

    def test_open_ticket(self, client, session, customer, customer_headers):
        order = place_order(session, customer)

        response = client.post(
            f"{API}/support/tickets", json={**TICKET, "order_id": order.id}, headers=customer_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "open"
        assert body["priority"] == "medium"
        assert body["order_id"] == order.id

        mine = client.get(f"{API}/support/tickets", headers=customer_headers).json()
        assert [t["id"] for t in mine] == [body["id"]]

    def test_order_must_belong_to_user(self, client, session, make_user, customer_headers):
        order = place_order(session, make_user())
        response = client.post(
            f"{API}/support/tickets", json={**TICKET, "order_id": order.id}, headers=customer_headers
        )
        assert response.status_code == 404

    def test_blank_subject(self, client, customer_headers):
        response = client.post(
            f"{API}/support/tickets", json={**TICKET, "subject": "   "}, headers=customer_headers
        )
        assert response.status_code == 400

    def test_requires_auth(self, client):
        assert client.post(f"{API}/support/tickets", json=TICKET).status_code == 401


class TestAdminSupport:

    def test_triage(self, client, session, admin, admin_headers, customer_headers):
        created = client.post(f"{API}/support/tickets", json=TICKET, headers=customer_headers).json()

        response = client.patch(
            f"{API}/admin/support/{created['id']}",
            json={"status": "in_progress", "priority": "high", "assigned_to": admin.id},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "in_progress"
        assert body["priority"] == "high"
        assert body["assigned_to"] == admin.id
        assert body["updated_at"] >= created["updated_at"]
        log = session.exec(select(AuditLog).where(AuditLog.action == "support.update")).one()
        assert log.entity_id == str(created["id"])

    def test_filters(self, client, admin_headers, customer_headers):
        first = client.post(f"{API}/support/tickets", json=TICKET, headers=customer_headers).json()
        client.post(f"{API}/support/tickets", json=TICKET, headers=customer_headers)
        client.patch(f"{API}/admin/support/{first['id']}", json={"priority": "urgent"}, headers=admin_headers)

        urgent = client.get(f"{API}/admin/support", params={"priority": "urgent"}, headers=admin_headers).json()
        everything = client.get(f"{API}/admin/support", params={"status": "all"}, headers=admin_headers).json()

        assert [t["id"] for t in urgent] == [first["id"]]
        assert len(everything) == 2

    def test_unknown_status_value(self, client, admin_headers, customer_headers):
        created = client.post(f"{API}/support/tickets", json=TICKET, headers=customer_headers).json()
        response = client.patch(
            f"{API}/admin/support/{created['id']}", json={"status": "escalated"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_missing_ticket(self, client, admin_headers):
        response = client.patch(f"{API}/admin/support/42", json={"status": "closed"}, headers=admin_headers)
        assert response.status_code == 404

    def test_marketing_cannot_view(self, client, make_user, headers_for):
        headers = headers_for(make_user("marketing"))
        assert client.get(f"{API}/admin/support", headers=headers).status_code == 403
