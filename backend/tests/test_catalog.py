"""
Categories and products.
"""
from decimal import Decimal

from fastapi.testclient import TestClient

from app.models.cart import CartItem
from app.models.product import Category

API = "/api/v1"


class TestCategories:

    def test_create_and_list(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/categories/", json={"name": " Hats "}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["name"] == "Hats"

        names = [c["name"] for c in client.get(f"{API}/categories/").json()]
        assert names == ["Hats"]

    def test_duplicate_name(self, client: TestClient, admin_headers, category):
        response = client.post(f"{API}/categories/", json={"name": category.name}, headers=admin_headers)
        assert response.status_code == 400


    def test_update_renames(self, client: TestClient, admin_headers, category):
        response = client.put(f"{API}/categories/{category.id}", json={"name": " Boots "}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Boots"

    def test_update_name_clash(self, client: TestClient, admin_headers, category, db_session):
        other = Category(name="Hats")
        db_session.add(other)
        db_session.commit()

        response = client.put(f"{API}/categories/{other.id}", json={"name": category.name}, headers=admin_headers)
        assert response.status_code == 400

    def test_update_unknown_is_404(self, client: TestClient, admin_headers):
        assert client.put(f"{API}/categories/99", json={"name": "X"}, headers=admin_headers).status_code == 404

    def test_delete_empty_category(self, client: TestClient, admin_headers, category):
        assert client.delete(f"{API}/categories/{category.id}", headers=admin_headers).status_code == 204
        assert client.get(f"{API}/categories/").json() == []

    def test_delete_with_products_rejected(self, client: TestClient, admin_headers, category, make_product):
        make_product()
        response = client.delete(f"{API}/categories/{category.id}", headers=admin_headers)
        assert response.status_code == 400

    def test_writes_require_admin(self, client: TestClient, shopper_headers, category):
        assert client.put(f"{API}/categories/{category.id}", json={"name": "X"}, headers=shopper_headers).status_code == 403
        assert client.delete(f"{API}/categories/{category.id}", headers=shopper_headers).status_code == 403


class TestProducts:

    def test_create(self, client: TestClient, admin_headers, category):
        response = client.post(f"{API}/products/", json={
            "name": "Trail boot",
            "price": "89.90",
            "category_id": category.id,
            "stock": 4,
        }, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["category_id"] == category.id
        assert response.json()["stock"] == 4

    def test_create_unknown_category(self, client: TestClient, admin_headers):
        response = client.post(f"{API}/products/", json={"name": "Lost", "price": "1.00", "category_id": 99}, headers=admin_headers)
        assert response.status_code == 400

    def test_create_requires_admin(self, client: TestClient, shopper_headers):
        response = client.post(f"{API}/products/", json={"name": "Nope", "price": "1.00"}, headers=shopper_headers)
        assert response.status_code == 403

    def test_list_hides_inactive_and_filters_by_category(self, client: TestClient, make_product, db_session):
        from app.models.product import Category

        other = Category(name="Bags")
        db_session.add(other)
        db_session.commit()
        visible = make_product(name="Visible")
        make_product(name="Hidden", is_active=False)
        bag = make_product(name="Tote", category_id=other.id)

        names = [p["name"] for p in client.get(f"{API}/products/").json()]
        assert names == ["Tote", "Visible"]

        filtered = client.get(f"{API}/products/", params={"category_id": other.id}).json()
        assert [p["id"] for p in filtered] == [bag.id]
        assert visible.id not in [p["id"] for p in filtered]

    def test_unknown_product_is_404(self, client: TestClient):
        assert client.get(f"{API}/products/1234").status_code == 404

    def test_update_fields(self, client: TestClient, admin_headers, make_product):
        product = make_product(price="10.00")

        response = client.put(f"{API}/products/{product.id}", json={"price": "12.00", "stock": 3}, headers=admin_headers)

        assert response.status_code == 200
        assert Decimal(str(response.json()["price"])) == Decimal("12.00")
        assert response.json()["stock"] == 3
        assert response.json()["name"] == product.name

    def test_update_unknown_category(self, client: TestClient, admin_headers, make_product):
        product = make_product()
        response = client.put(f"{API}/products/{product.id}", json={"category_id": 99}, headers=admin_headers)
        assert response.status_code == 400

    def test_update_unknown_is_404(self, client: TestClient, admin_headers):
        assert client.put(f"{API}/products/999", json={"price": "1.00"}, headers=admin_headers).status_code == 404

    def test_delete_hides_product_and_drops_cart_lines(self, client: TestClient, admin_headers, make_product, db_session):
        product = make_product()
        client.post(f"{API}/cart/add", json={"product_id": product.id, "quantity": 1})

        response = client.delete(f"{API}/products/{product.id}", headers=admin_headers)

        assert response.status_code == 204
        assert client.get(f"{API}/products/").json() == []
        assert db_session.query(CartItem).count() == 0
        assert client.get(f"{API}/cart/").json()["items"] == []

    def test_delete_requires_admin(self, client: TestClient, shopper_headers, make_product):
        product = make_product()
        assert client.delete(f"{API}/products/{product.id}", headers=shopper_headers).status_code == 403


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "healthy"}
