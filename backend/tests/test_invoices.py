"""
Placing orders from the cart and reading them back.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import NotFoundError, ValidationError
from app.models.discount import TargetTypeEnum
from app.models.invoice import Invoice, InvoiceStatusEnum
from app.models.product import Product
from app.models.user import RoleEnum, User
from app.services import cart_service, invoice_service
from app.services.cart_identity import CartKey

API = "/api/v1"

ORDER = {
    "recipient_name": "Lan Tran",
    "recipient_phone": "0901234567",
    "recipient_address": "12 Market St",
}


def _money(value) -> Decimal:
    return Decimal(str(value))


class TestInvoiceNumbers:

    def test_first_of_the_day(self, db_session):
        number = invoice_service.generate_invoice_number(db_session, datetime(2026, 3, 9, 10, 0))
        assert number == "INV-20260309-001"

    def test_continues_the_days_sequence(self, db_session, shopper):
        for seq in ("001", "007"):
            db_session.add(Invoice(
                invoice_number=f"INV-20260309-{seq}",
                user_id=shopper.id,
                recipient_name="A",
                recipient_phone="1",
                recipient_address="B",
                subtotal=0,
                total_amount=0,
            ))
        db_session.commit()

        assert invoice_service.generate_invoice_number(db_session, datetime(2026, 3, 9)) == "INV-20260309-008"
        assert invoice_service.generate_invoice_number(db_session, datetime(2026, 3, 10)) == "INV-20260310-001"


class TestCreateOrder:

    def test_order_copies_priced_cart_and_empties_it(self, db_session, shopper, make_product, make_discount, make_program):
        shoe = make_product(name="Shoe", price="100.00")
        sock = make_product(name="Sock", price="10.00")
        discount = make_discount("Shoe deal", percent=20, target_type=TargetTypeEnum.PRODUCT, target_id=shoe.id)
        make_program([discount.id], name="Autumn")
        key = CartKey(user_id=shopper.id)
        cart_service.add_to_cart(db_session, key, shoe.id, 2)
        cart_service.add_to_cart(db_session, key, sock.id, 1)

        invoice = invoice_service.create_order(db_session, shopper.id, dict(ORDER, shipping_method="fast"))

        assert invoice.status == InvoiceStatusEnum.PENDING
        assert invoice.subtotal == Decimal("210.00")
        assert invoice.discount_amount == Decimal("40.00")
        assert invoice.shipping_fee == Decimal("30000")
        assert invoice.total_amount == Decimal("170.00") + Decimal("30000")
        lines = [(i.product_name, i.quantity, i.unit_price, i.discount_percent, i.program_name, i.total_price) for i in invoice.items]
        assert lines == [
            ("Shoe", 2, Decimal("100.00"), 20, "Autumn", Decimal("160.00")),
            ("Sock", 1, Decimal("10.00"), 0, None, Decimal("10.00")),
        ]

        cart = cart_service.find_cart(db_session, key)
        assert cart.items == []
        assert cart.final_total_price == Decimal("0")

    def test_standard_shipping_is_default(self, db_session, shopper, make_product):
        product = make_product(price="50.00")
        cart_service.add_to_cart(db_session, CartKey(user_id=shopper.id), product.id, 1)

        invoice = invoice_service.create_order(db_session, shopper.id, dict(ORDER))

        assert invoice.shipping_fee == Decimal("15000")
        assert invoice.payment_method.value == "COD"

    def test_empty_cart_rejected(self, db_session, shopper):
        with pytest.raises(ValidationError):
            invoice_service.create_order(db_session, shopper.id, dict(ORDER))
        assert db_session.query(Invoice).count() == 0

    def test_withdrawn_product_rejects_whole_order(self, db_session, shopper, make_product):
        product = make_product()
        key = CartKey(user_id=shopper.id)
        cart_service.add_to_cart(db_session, key, product.id, 1)
        db_session.query(Product).filter(Product.id == product.id).update({Product.is_active: False})
        db_session.commit()

        with pytest.raises(ValidationError):
            invoice_service.create_order(db_session, shopper.id, dict(ORDER))

        assert db_session.query(Invoice).count() == 0
        assert len(cart_service.find_cart(db_session, key).items) == 1

    def test_stock_checked_again_at_order_time(self, db_session, shopper, make_product):
        product = make_product(stock=5)
        key = CartKey(user_id=shopper.id)
        cart_service.add_to_cart(db_session, key, product.id, 4)
        db_session.query(Product).filter(Product.id == product.id).update({Product.stock: 2})
        db_session.commit()

        with pytest.raises(ValidationError):
            invoice_service.create_order(db_session, shopper.id, dict(ORDER))


class TestInvoiceEndpoints:

    def _place_order(self, client, headers, product, **overrides):
        client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 1}, headers=headers)
        return client.post(f"{API}/invoices/", json=dict(ORDER, **overrides), headers=headers)

    def test_place_order(self, client: TestClient, make_product, shopper_headers):
        product = make_product(price="25.00")

        response = self._place_order(client, shopper_headers, product)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Order placed"
        assert data["invoice_number"].startswith("INV-")
        assert _money(data["total_amount"]) == Decimal("15025.00")
        assert client.get(f"{API}/cart/", headers=shopper_headers).json()["items"] == []

    def test_empty_cart_is_400(self, client: TestClient, shopper_headers):
        response = client.post(f"{API}/invoices/", json=ORDER, headers=shopper_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cart is empty"

    def test_blank_recipient_is_422(self, client: TestClient, shopper_headers):
        response = client.post(f"{API}/invoices/", json=dict(ORDER, recipient_name="  "), headers=shopper_headers)
        assert response.status_code == 422

    def test_order_requires_login(self, client: TestClient):
        assert client.post(f"{API}/invoices/", json=ORDER).status_code == 401

    def test_my_invoices_and_detail(self, client: TestClient, make_product, shopper_headers):
        product = make_product(name="Lamp", price="40.00")
        invoice_id = self._place_order(client, shopper_headers, product, note="Leave at door").json()["invoice_id"]

        mine = client.get(f"{API}/invoices/me", headers=shopper_headers).json()
        assert [i["id"] for i in mine] == [invoice_id]

        detail = client.get(f"{API}/invoices/{invoice_id}", headers=shopper_headers).json()
        assert detail["note"] == "Leave at door"
        assert detail["status"] == "PENDING"
        assert detail["items"][0]["product_name"] == "Lamp"

    def test_other_shoppers_invoice_is_404(self, client: TestClient, db_session, make_product, shopper_headers, headers_for):
        product = make_product()
        invoice_id = self._place_order(client, shopper_headers, product).json()["invoice_id"]
        stranger = User(email="stranger@example.com", hashed_password="x", display_name="Stranger", role=RoleEnum.USER)
        db_session.add(stranger)
        db_session.commit()

        response = client.get(f"{API}/invoices/{invoice_id}", headers=headers_for(stranger))

        assert response.status_code == 404
        assert client.get(f"{API}/invoices/me", headers=headers_for(stranger)).json() == []

    def test_admin_lists_and_reads_all(self, client: TestClient, make_product, shopper_headers, admin_headers):
        product = make_product()
        invoice_id = self._place_order(client, shopper_headers, product).json()["invoice_id"]

        listed = client.get(f"{API}/invoices/", headers=admin_headers)
        assert listed.status_code == 200
        assert [i["id"] for i in listed.json()] == [invoice_id]
        assert client.get(f"{API}/invoices/", params={"status": "PAID"}, headers=admin_headers).json() == []
        assert client.get(f"{API}/invoices/{invoice_id}", headers=admin_headers).status_code == 200

    def test_listing_all_requires_admin(self, client: TestClient, shopper_headers):
        assert client.get(f"{API}/invoices/", headers=shopper_headers).status_code == 403

    def test_missing_invoice_is_not_found_even_for_admin(self, db_session, admin_user):
        with pytest.raises(NotFoundError):
            invoice_service.get_invoice(db_session, 1, admin_user)
