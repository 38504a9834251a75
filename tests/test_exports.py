# tests/test_exports.py
"""
Tests for the CSV exports under /admin/export.
"""
import csv
from datetime import timedelta
from io import StringIO

from sqlmodel import select

from storefront.core.clock import utcnow
from storefront.models.audit import AuditLog
from storefront.models.order import Order
from storefront.services.export_service import render_csv

API = "/api/v1"


def parse(response) -> list[list[str]]:
    return list(csv.reader(StringIO(response.text)))


def make_order(session, user, total, status="pending", created_at=None) -> Order:
    order = Order(user_id=user.id, subtotal=total, total_amount=total, status=status)
    if created_at is not None:
        order.created_at = created_at
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


class TestRenderCsv:

    def test_every_field_is_quoted(self):
        assert render_csv(["A", "B"], [[1, None]]) == '"A","B"\n"1",""\n'

    def test_embedded_quotes_are_doubled(self):
        assert render_csv(["Name"], [['The "Blue" One']]) == '"Name"\n"The ""Blue"" One"\n'


class TestOrdersExport:

    def test_headers_and_rows(self, client, session, admin_headers, customer):
        make_order(session, customer, 42.0)
        make_order(session, customer, 10.5, status="delivered")

        response = client.get(f"{API}/admin/export/orders", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        filename = f"orders_{utcnow().date().isoformat()}.csv"
        assert response.headers["content-disposition"] == f'attachment; filename="{filename}"'

        rows = parse(response)
        assert len(response.text.splitlines()) == 3
        assert rows[0][:3] == ["Order ID", "Customer Name", "Customer Email"]
        assert {r[3] for r in rows[1:]} == {"42.00", "10.50"}
        assert rows[1][2] == "shopper@example.com"

    def test_status_and_date_filters(self, client, session, admin_headers, customer):
        old = utcnow() - timedelta(days=10)
        make_order(session, customer, 1.0, created_at=old)
        recent = make_order(session, customer, 2.0, status="shipped")
        make_order(session, customer, 3.0, status="pending")

        response = client.get(
            f"{API}/admin/export/orders",
            params={"startDate": (utcnow() - timedelta(days=1)).date().isoformat(), "status": "shipped"},
            headers=admin_headers,
        )

        assert [r[0] for r in parse(response)[1:]] == [str(recent.id)]

    def test_export_is_audited(self, client, session, admin, admin_headers):
        client.get(f"{API}/admin/export/orders", params={"status": "all"}, headers=admin_headers)

        log = session.exec(select(AuditLog).where(AuditLog.action == "export.orders")).one()
        assert log.admin_id == admin.id
        assert log.details["count"] == 0
        assert log.details["filters"]["status"] == "all"

    def test_marketing_cannot_export_orders(self, client, make_user, headers_for):
        headers = headers_for(make_user("marketing"))
        assert client.get(f"{API}/admin/export/orders", headers=headers).status_code == 403


class TestCatalogExports:

    def test_products_quotes_names(self, client, admin_headers, make_product):
        make_product(name='L\'Eau "Bleue"')
        make_product(is_active=False)

        active_only = client.get(f"{API}/admin/export/products", headers=admin_headers)
        everything = client.get(
            f"{API}/admin/export/products", params={"includeDisabled": "true"}, headers=admin_headers
        )

        assert '"L\'Eau ""Bleue"""' in active_only.text
        assert len(parse(active_only)) == 2
        assert len(parse(everything)) == 3

    def test_inventory_filters(self, client, admin_headers, make_product):
        out = make_product(stock=0)
        low = make_product(stock=4)
        make_product(stock=40)

        def ids(stock_filter):
            response = client.get(
                f"{API}/admin/export/inventory", params={"filter": stock_filter}, headers=admin_headers
            )
            return [(r[0], r[5]) for r in parse(response)[1:]]

        assert ids("out") == [(str(out.id), "Out of Stock")]
        assert ids("low") == [(str(low.id), "Low Stock")]
        assert len(ids("all")) == 3

    def test_inventory_unknown_filter(self, client, admin_headers):
        response = client.get(f"{API}/admin/export/inventory", params={"filter": "some"}, headers=admin_headers)
        assert response.status_code == 400


class TestReports:

    def test_finance_summary(self, client, session, admin_headers, customer):
        make_order(session, customer, 100.0, status="delivered")
        make_order(session, customer, 50.0, status="delivered")
        make_order(session, customer, 30.0, status="pending")

        response = client.get(f"{API}/admin/export/finance", params={"period": "month"}, headers=admin_headers)

        rows = parse(response)
        assert rows[-4:] == [
            ["Summary"],
            ["Total Orders", "3"],
            ["Delivered Orders", "2"],
            ["Total Revenue", "150.00"],
        ]

    def test_finance_unknown_period(self, client, admin_headers):
        response = client.get(f"{API}/admin/export/finance", params={"period": "decade"}, headers=admin_headers)
        assert response.status_code == 400

    def test_analytics_summary(self, client, session, admin_headers, customer):
        make_order(session, customer, 20.0)
        make_order(session, customer, 5.0)

        rows = parse(client.get(f"{API}/admin/export/analytics", headers=admin_headers))

        assert rows == [
            ["Date", "Revenue", "Order Count"],
            [utcnow().date().isoformat(), "25.00", "2"],
        ]

    def test_analytics_unknown_type(self, client, admin_headers):
        response = client.get(f"{API}/admin/export/analytics", params={"type": "weather"}, headers=admin_headers)
        assert response.status_code == 400

    def test_audit_log_export(self, client, admin_headers):
        client.post(f"{API}/admin/promotions", json={"code": "CSV", "discount_value": 5}, headers=admin_headers)

        rows = parse(client.get(f"{API}/admin/export/audit-logs", headers=admin_headers))

        assert rows[1][1] == "Ada Admin"
        assert rows[1][3] == "coupon.create"
        assert rows[1][7] == '{"code": "CSV"}'

    def test_promotions_and_support_exports(self, client, admin_headers, customer_headers):
        client.post(f"{API}/admin/promotions", json={"code": "ALL", "discount_value": 5}, headers=admin_headers)
        client.post(
            f"{API}/support/tickets", json={"subject": "Hi", "message": "Question"}, headers=customer_headers
        )

        coupons = parse(client.get(f"{API}/admin/export/promotions", headers=admin_headers))
        tickets = parse(client.get(f"{API}/admin/export/support", headers=admin_headers))

        assert coupons[1][1] == "ALL"
        assert coupons[1][5] == "Unlimited"
        assert tickets[1][2] == "Sam Shopper"
        assert tickets[1][6] == "Unassigned"
