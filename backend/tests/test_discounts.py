"""
Discount CRUD endpoints.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

API = "/api/v1/discounts"


def _body(**overrides):
    body = {
        "name": "  Weekend deal ",
        "type": "SALE",
        "target_type": "ORDER_TOTAL",
        "discount_percent": 15,
        "start_sale": "2026-11-01T10:00:00",
    }
    body.update(overrides)
    return body


class TestCreateDiscount:

    @pytest.mark.parametrize("discount_type, expected_end", [
        ("SALE", datetime(2026, 11, 2, 10, 0)),
        ("AGENCY", datetime(2026, 12, 1, 10, 0)),
    ])
    def test_default_end_sale(self, client: TestClient, admin_headers, discount_type, expected_end):
        response = client.post(f"{API}/", json=_body(type=discount_type), headers=admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Weekend deal"
        assert datetime.fromisoformat(data["end_sale"]) == expected_end
        assert data["promotion_type"] == "GENERAL"
        assert data["min_quantity"] == 1

    def test_explicit_end_sale_kept(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/", json=_body(end_sale="2026-11-05T00:00:00"), headers=admin_headers)
        assert datetime.fromisoformat(response.json()["end_sale"]) == datetime(2026, 11, 5)

    def test_aware_datetimes_stored_as_utc(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/", json=_body(start_sale="2026-11-01T12:00:00+02:00"), headers=admin_headers)
        assert datetime.fromisoformat(response.json()["start_sale"]) == datetime(2026, 11, 1, 10, 0)

    def test_end_before_start_is_400(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/", json=_body(end_sale="2026-10-01T00:00:00"), headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("percent", [-1, 101])
    def test_percent_out_of_range_is_422(self, client: TestClient, admin_headers, percent):
        response = client.post(f"{API}/", json=_body(discount_percent=percent), headers=admin_headers)
        assert response.status_code == 422

    def test_program_id_not_writable(self, client: TestClient, admin_headers, make_program):
        program = make_program()
        response = client.post(f"{API}/", json=_body(program_id=program.id), headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["program_id"] is None

    def test_requires_admin(self, client: TestClient, shopper_headers):
        assert client.post(f"{API}/", json=_body(), headers=shopper_headers).status_code == 403


class TestReadUpdateDelete:

    def test_detail_shows_program(self, client: TestClient, make_discount, make_program):
        discount = make_discount("Linked")
        program = make_program([discount.id], name="Winter")

        data = client.get(f"{API}/{discount.id}").json()

        assert data["program_id"] == program.id
        assert data["program"]["name"] == "Winter"

    def test_list_newest_first(self, client: TestClient, make_discount):
        first = make_discount("First")
        second = make_discount("Second")

        ids = [d["id"] for d in client.get(f"{API}/").json()]
        assert ids == [second.id, first.id]

    def test_unknown_is_404(self, client: TestClient):
        response = client.get(f"{API}/404")
        assert response.status_code == 404
        assert response.json()["detail"] == "Discount not found"

    def test_partial_update(self, client: TestClient, admin_headers, make_discount):
        discount = make_discount("Old name", percent=10)

        response = client.put(f"{API}/{discount.id}", json={"discount_percent": 35}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["discount_percent"] == 35
        assert response.json()["name"] == "Old name"

    def test_update_can_clear_end_sale(self, client: TestClient, admin_headers, make_discount):
        discount = make_discount()
        response = client.put(f"{API}/{discount.id}", json={"end_sale": None}, headers=admin_headers)
        assert response.json()["end_sale"] is None

    def test_delete_is_soft_and_keeps_program_link(self, client: TestClient, admin_headers, make_discount, make_program):
        discount = make_discount()
        program = make_program([discount.id])

        response = client.delete(f"{API}/{discount.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["program_id"] == program.id
        assert client.get(f"/api/v1/sale-programs/{program.id}").json()["discounts"][0]["id"] == discount.id
