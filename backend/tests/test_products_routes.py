"""
Product API tests.

Verifies:
- Read access for every signed-in user, writes for admins only
- Payload validation (allowlist, money coercion, business rules)
- Barcode uniqueness and lookup
- Delete vs. deactivate depending on sales history
"""

import pytest

from retailpos.extensions import db
from retailpos.models import Product, StockMovement
from retailpos.services import sales_service


def _payload(**overrides):
    body = {"name": "Coffee Beans", "price": "12.50", "cost": "7.25", "stock": 20, "barcode": "4006381333931"}
    body.update(overrides)
    return body


class TestProductCreate:
    def test_admin_creates_product_with_initial_stock(self, client, admin_headers, admin_user):
        resp = client.post("/api/products", headers=admin_headers, json=_payload())
        assert resp.status_code == 201
        data = resp.json
        assert data["price"] == "12.50"
        assert data["cost"] == "7.25"
        assert data["stock"] == 20
        assert data["min_stock"] == 5

        movement = db.session.query(StockMovement).filter_by(product_id=data["id"]).one()
        assert movement.type == "in"
        assert movement.quantity == 20
        assert movement.reason == "initial stock"
        assert movement.user_id == admin_user.id

    def test_cashier_forbidden(self, client, cashier_headers):
        resp = client.post("/api/products", headers=cashier_headers, json=_payload())
        assert resp.status_code == 403
        assert resp.json["required_roles"] == ["admin"]

    def test_missing_required_fields(self, client, admin_headers):
        resp = client.post("/api/products", headers=admin_headers, json={"name": "Tea"})
        assert resp.status_code == 400
        assert "cost" in resp.json["error"]

    @pytest.mark.parametrize("overrides", [
        {"price": "-1.00"},
        {"price": "10000000.00"},
        {"price": "1e30"},
        {"cost": "1e999999"},
        {"price": "1.234"},
        {"price": "abc"},
        {"stock": -1},
        {"name": ""},
        {"sku": "not-a-field"},
    ])
    def test_rejects_invalid_payload(self, client, admin_headers, overrides):
        resp = client.post("/api/products", headers=admin_headers, json=_payload(**overrides))
        assert resp.status_code == 400
        assert resp.json["message"]

    def test_duplicate_barcode(self, client, admin_headers, make_product):
        make_product(barcode="4006381333931")
        resp = client.post("/api/products", headers=admin_headers, json=_payload())
        assert resp.status_code == 409

    def test_unknown_category(self, client, admin_headers):
        resp = client.post("/api/products", headers=admin_headers, json=_payload(category_id=77))
        assert resp.status_code == 404

    def test_blank_barcode_stored_as_null(self, client, admin_headers):
        first = client.post("/api/products", headers=admin_headers, json=_payload(barcode=""))
        second = client.post("/api/products", headers=admin_headers, json=_payload(barcode=""))
        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json["barcode"] is None


class TestProductRead:
    def test_list_filters_and_orders_by_name(self, client, cashier_headers, make_product, make_category):
        snacks = make_category("Snacks")
        make_product(name="Chips", category=snacks)
        make_product(name="Apples")
        make_product(name="Biscuits", category=snacks, is_active=False)

        resp = client.get("/api/products", headers=cashier_headers)
        assert [p["name"] for p in resp.json["items"]] == ["Apples", "Biscuits", "Chips"]

        resp = client.get(f"/api/products?category_id={snacks.id}&active=true", headers=cashier_headers)
        assert [p["name"] for p in resp.json["items"]] == ["Chips"]

    def test_pagination(self, client, cashier_headers, make_product):
        for i in range(5):
            make_product(name=f"Item {i}")

        resp = client.get("/api/products?page=2&per_page=2", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 2
        assert resp.json["pagination"]["total"] == 5
        assert resp.json["pagination"]["total_pages"] == 3
        assert resp.json["pagination"]["has_next"] is True

    def test_get_by_barcode(self, client, cashier_headers, make_product):
        product = make_product(barcode="012345678905")
        resp = client.get("/api/products/barcode/012345678905", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["id"] == product.id

        resp = client.get("/api/products/barcode/000", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "No product found with this barcode"

    def test_get_missing(self, client, cashier_headers):
        resp = client.get("/api/products/999", headers=cashier_headers)
        assert resp.status_code == 404

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/products").status_code == 401


class TestProductUpdate:
    def test_update_price(self, client, admin_headers, make_product):
        product = make_product(price="1.00")
        resp = client.put(f"/api/products/{product.id}", headers=admin_headers, json={"price": 2.5})
        assert resp.status_code == 200
        assert resp.json["price"] == "2.50"

    def test_stock_not_writable(self, client, admin_headers, make_product):
        product = make_product(stock=3)
        resp = client.put(f"/api/products/{product.id}", headers=admin_headers, json={"stock": 100})
        assert resp.status_code == 400
        assert db.session.get(Product, product.id).stock == 3

    def test_barcode_conflict(self, client, admin_headers, make_product):
        make_product(barcode="111")
        other = make_product(barcode="222")
        resp = client.put(f"/api/products/{other.id}", headers=admin_headers, json={"barcode": "111"})
        assert resp.status_code == 409

    def test_missing(self, client, admin_headers):
        resp = client.put("/api/products/999", headers=admin_headers, json={"name": "X"})
        assert resp.status_code == 404


class TestProductDelete:
    def test_unsold_product_is_removed(self, client, admin_headers, make_product):
        product = make_product()
        product_id = product.id
        resp = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["result"] == "deleted"
        assert db.session.get(Product, product_id) is None

    def test_sold_product_is_deactivated(self, client, admin_headers, cashier_user, make_product):
        product = make_product(stock=5)
        sales_service.checkout(
            [{"product_id": product.id, "quantity": 1}],
            user_id=cashier_user.id,
            payment_method="card",
        )

        resp = client.delete(f"/api/products/{product.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["result"] == "deactivated"
        assert db.session.get(Product, product.id).is_active is False

    def test_missing(self, client, admin_headers):
        assert client.delete("/api/products/999", headers=admin_headers).status_code == 404
