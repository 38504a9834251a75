# tests/test_promotions.py
"""
Tests for coupon validation and /admin/promotions.
"""
from datetime import timedelta

import pytest
from sqlmodel import select

from storefront.core.clock import utcnow
from storefront.models.audit import AuditLog
from storefront.models.coupon import Coupon
from storefront.services.coupon_service import compute_discount

API = "/api/v1"


@pytest.fixture
def make_coupon(session):
    def _make_coupon(code: str, **fields) -> Coupon:
        fields.setdefault("discount_value", 10)
        coupon = Coupon(code=code, **fields)
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    return _make_coupon


def validate(client, code, subtotal):
    return client.post(f"{API}/promotions/validate", json={"code": code, "subtotal": subtotal})


class TestComputeDiscount:

    def test_percentage_is_rounded_to_cents(self):
        assert compute_discount("percentage", 12.5, 19.99) == 2.5

    def test_fixed_never_exceeds_subtotal(self):
        assert compute_discount("fixed", 25, 20.0) == 20.0
        assert compute_discount("fixed", 5, 20.0) == 5.0


class TestValidate:

    def test_percentage(self, client, make_coupon):
        make_coupon("WELCOME", discount_type="percentage", discount_value=20)

        response = validate(client, " welcome ", 80.0)

        assert response.status_code == 200
        assert response.json() == {
            "code": "WELCOME",
            "discount_type": "percentage",
            "discount_value": 20.0,
            "discount_amount": 16.0,
            "total": 64.0,
        }

    def test_fixed(self, client, make_coupon):
        make_coupon("FLAT15", discount_type="fixed", discount_value=15)
        body = validate(client, "FLAT15", 40.0).json()
        assert body["discount_amount"] == 15.0
        assert body["total"] == 25.0

    def test_unknown_code(self, client):
        assert validate(client, "NOPE", 50.0).status_code == 400

    def test_inactive(self, client, make_coupon):
        make_coupon("OFF", is_active=False)
        assert validate(client, "OFF", 50.0).status_code == 400

    def test_expired(self, client, make_coupon):
        make_coupon("OLD", expires_at=utcnow() - timedelta(days=1))
        response = validate(client, "OLD", 50.0)
        assert response.status_code == 400
        assert response.json()["detail"] == "Coupon has expired"

    def test_not_yet_expired(self, client, make_coupon):
        make_coupon("SOON", expires_at=utcnow() + timedelta(days=1))
        assert validate(client, "SOON", 50.0).status_code == 200

    def test_below_minimum(self, client, make_coupon):
        make_coupon("BIGSPEND", min_order_amount=100)
        response = validate(client, "BIGSPEND", 99.99)
        assert response.status_code == 400
        assert response.json()["detail"] == "Minimum order amount is 100.00"

    def test_usage_limit_reached(self, client, make_coupon):
        make_coupon("ONCE", usage_limit=1, used_count=1)
        response = validate(client, "ONCE", 50.0)
        assert response.status_code == 400
        assert response.json()["detail"] == "Coupon usage limit reached"


class TestAdminPromotions:

    def test_create_upper_cases_and_audits(self, client, session, admin, admin_headers):
        response = client.post(
            f"{API}/admin/promotions",
            json={"code": "summer25", "discount_type": "percentage", "discount_value": 25},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["code"] == "SUMMER25"
        assert response.json()["used_count"] == 0
        log = session.exec(select(AuditLog).where(AuditLog.action == "coupon.create")).one()
        assert log.admin_id == admin.id
        assert log.details == {"code": "SUMMER25"}

    def test_duplicate_code(self, client, admin_headers, make_coupon):
        make_coupon("TAKEN")
        response = client.post(
            f"{API}/admin/promotions", json={"code": "taken", "discount_value": 5}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_percentage_over_100(self, client, admin_headers):
        response = client.post(
            f"{API}/admin/promotions",
            json={"code": "TOOMUCH", "discount_type": "percentage", "discount_value": 150},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_update_and_delete(self, client, session, admin_headers, make_coupon):
        coupon = make_coupon("EDIT", discount_value=10)

        response = client.patch(
            f"{API}/admin/promotions/{coupon.id}", json={"discount_value": 12.5}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["discount_value"] == 12.5

        assert client.delete(f"{API}/admin/promotions/{coupon.id}", headers=admin_headers).status_code == 204
        assert client.get(f"{API}/admin/promotions/{coupon.id}", headers=admin_headers).status_code == 404
        actions = [log.action for log in session.exec(select(AuditLog).order_by(AuditLog.id)).all()]
        assert actions == ["coupon.update", "coupon.delete"]

    def test_marketing_can_manage_promotions(self, client, make_user, headers_for):
        headers = headers_for(make_user("marketing"))
        response = client.post(
            f"{API}/admin/promotions", json={"code": "MKT", "discount_value": 5}, headers=headers
        )
        assert response.status_code == 201

    def test_support_has_no_promotion_access(self, client, make_user, headers_for):
        headers = headers_for(make_user("support"))
        assert client.get(f"{API}/admin/promotions", headers=headers).status_code == 403
