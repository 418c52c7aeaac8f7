"""
Sales API tests.

Verifies the HTTP contract of checkout, quotes, sale history and status
changes, including the status code for each kind of rejection.
"""

from decimal import Decimal

import pytest

from retailpos.extensions import db
from retailpos.models import Product, Sale
from retailpos.services import inventory_service, sales_service


@pytest.fixture
def cart(make_product):
    shirt = make_product(name="Shirt", price="100.00", stock=5)
    mug = make_product(name="Mug", price="50.00", stock=3)
    return shirt, mug


def _checkout_body(shirt, mug, **overrides):
    body = {
        "payment_method": "cash",
        "items": [
            {"product_id": shirt.id, "quantity": 2, "unit_price": "100.00"},
            {"product_id": mug.id, "quantity": 1, "unit_price": "50.00"},
        ],
        "discount": {"type": "percentage", "value": 10},
        "amount_tendered": "250.00",
    }
    body.update(overrides)
    return body


class TestCheckoutRoute:
    def test_checkout_created(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(
            shirt, mug, subtotal="250.00", tax="22.50", total="247.50",
        ))

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["subtotal"] == "250.00"
        assert sale["discount"] == "25.00"
        assert sale["tax"] == "22.50"
        assert sale["total"] == "247.50"
        assert sale["change_due"] == "2.50"
        assert sale["status"] == "completed"
        assert sale["created_at"].endswith("Z")
        assert [i["product_name"] for i in resp.json["items"]] == ["Shirt", "Mug"]
        assert db.session.get(Product, shirt.id).stock == 3

    def test_plain_amount_discount(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(
            shirt, mug, discount="50", payment_method="card", amount_tendered=None,
        ))
        assert resp.status_code == 201
        assert resp.json["sale"]["discount"] == "50.00"
        assert resp.json["sale"]["total"] == "220.00"
        assert resp.json["sale"]["amount_tendered"] is None

    def test_insufficient_stock_conflict(self, client, cashier_headers, cart):
        shirt, mug = cart
        body = _checkout_body(shirt, mug)
        body["items"][1]["quantity"] = 4
        body["amount_tendered"] = "1000"

        resp = client.post("/api/sales", headers=cashier_headers, json=body)
        assert resp.status_code == 409
        assert resp.json["details"]["items"] == [
            {"product_id": mug.id, "requested_quantity": 4, "available": 3}
        ]
        assert db.session.query(Sale).count() == 0

    def test_insufficient_payment(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(
            shirt, mug, amount_tendered="200.00",
        ))
        assert resp.status_code == 400
        assert resp.json["details"]["total"] == "247.50"

    def test_total_mismatch(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(
            shirt, mug, total="250.00",
        ))
        assert resp.status_code == 400
        assert "total" in resp.json["details"]

    def test_unknown_product(self, client, cashier_headers, cart):
        shirt, mug = cart
        body = _checkout_body(shirt, mug)
        body["items"].append({"product_id": 9999, "quantity": 1})
        resp = client.post("/api/sales", headers=cashier_headers, json=body)
        assert resp.status_code == 404
        assert resp.json["details"]["product_ids"] == [9999]

    @pytest.mark.parametrize("overrides", [
        {"items": []},
        {"payment_method": "cheque"},
        {"payment_method": None},
        {"discount": "lots"},
        {"amount_tendered": "1e30"},
        {"discount": {"type": "percentage", "value": "1e999999"}},
        {"items": [{"product_id": 1, "quantity": "\N{SUPERSCRIPT TWO}"}]},
    ])
    def test_bad_request(self, client, cashier_headers, cart, overrides):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(shirt, mug, **overrides))
        assert resp.status_code == 400
        assert resp.json["message"] == resp.json["error"]

    def test_unexpected_error_is_500(self, client, cashier_headers, cart, monkeypatch):
        shirt, mug = cart

        def boom(**kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(inventory_service, "record_movement", boom)
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(shirt, mug))
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error", "message": "Internal server error"}
        assert db.session.query(Sale).count() == 0
        assert db.session.get(Product, shirt.id).stock == 5

    def test_requires_auth(self, client, cart):
        shirt, mug = cart
        assert client.post("/api/sales", json=_checkout_body(shirt, mug)).status_code == 401


class TestQuoteRoute:
    def test_quote_does_not_persist(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales/quote", headers=cashier_headers, json=_checkout_body(shirt, mug))
        assert resp.status_code == 200
        assert resp.json["totals"]["total"] == "247.50"
        assert resp.json["totals"]["change"] == "2.50"
        assert resp.json["lines"][0]["total"] == "200.00"
        assert db.session.query(Sale).count() == 0
        assert db.session.get(Product, shirt.id).stock == 5

    @pytest.mark.parametrize("overrides,message", [
        ({"amount_tendered": "1e30"}, "amount_tendered cannot exceed 9999999.99"),
        ({"discount": {"type": "percentage", "value": "1e999999"}}, "discount cannot exceed 9999999.99"),
    ])
    def test_out_of_range_amount_is_400(self, client, cashier_headers, cart, overrides, message):
        shirt, mug = cart
        resp = client.post("/api/sales/quote", headers=cashier_headers, json=_checkout_body(shirt, mug, **overrides))
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_unexpected_error_is_500(self, client, cashier_headers, cart, monkeypatch):
        shirt, mug = cart

        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(sales_service, "price_cart", boom)
        resp = client.post("/api/sales/quote", headers=cashier_headers, json=_checkout_body(shirt, mug))
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error", "message": "Internal server error"}


class TestErrorBody:
    """Every rejection carries a human-readable message alongside error/details."""

    def test_bad_request_message(self, client, cashier_headers, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", headers=cashier_headers, json=_checkout_body(
            shirt, mug, amount_tendered="200.00",
        ))
        assert resp.status_code == 400
        assert resp.json["message"] == "Amount tendered is less than the sale total"
        assert resp.json["error"] == resp.json["message"]
        assert resp.json["details"] == {"total": "247.50", "amount_tendered": "200.00"}

    def test_not_found_message(self, client, cashier_headers, cart):
        shirt, mug = cart
        body = _checkout_body(shirt, mug)
        body["items"].append({"product_id": 9999, "quantity": 1})
        resp = client.post("/api/sales", headers=cashier_headers, json=body)
        assert resp.status_code == 404
        assert resp.json["message"] == "Product not found"

    def test_conflict_message(self, client, cashier_headers, cart):
        shirt, mug = cart
        body = _checkout_body(shirt, mug, amount_tendered="1000")
        body["items"][1]["quantity"] = 4
        resp = client.post("/api/sales", headers=cashier_headers, json=body)
        assert resp.status_code == 409
        assert resp.json["message"] == "Insufficient stock"

    def test_unauthorized_message(self, client, cart):
        shirt, mug = cart
        resp = client.post("/api/sales", json=_checkout_body(shirt, mug))
        assert resp.status_code == 401
        assert resp.json["message"]
        assert "details" not in resp.json

    def test_missing_sale_message(self, client, cashier_headers):
        resp = client.get("/api/sales/424242", headers=cashier_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == resp.json["error"]


class TestSaleHistory:
    def _sell(self, client, headers, product, qty=1):
        resp = client.post("/api/sales", headers=headers, json={
            "payment_method": "card",
            "items": [{"product_id": product.id, "quantity": qty}],
        })
        assert resp.status_code == 201
        return resp.json["sale"]

    def test_list_newest_first_with_limit(self, client, cashier_headers, make_product):
        product = make_product(stock=10)
        ids = [self._sell(client, cashier_headers, product)["id"] for _ in range(3)]

        resp = client.get("/api/sales?limit=2", headers=cashier_headers)
        assert resp.status_code == 200
        assert [s["id"] for s in resp.json["items"]] == [ids[2], ids[1]]

    def test_date_range(self, client, cashier_headers, make_product):
        product = make_product(stock=10)
        self._sell(client, cashier_headers, product)

        resp = client.get(
            "/api/sales?start=2000-01-01T00:00:00Z&end=2999-01-01T00:00:00Z",
            headers=cashier_headers,
        )
        assert resp.json["count"] == 1

        resp = client.get(
            "/api/sales?start=2000-01-01T00:00:00Z&end=2000-01-02T00:00:00Z",
            headers=cashier_headers,
        )
        assert resp.json["count"] == 0

    def test_date_range_requires_both_bounds(self, client, cashier_headers):
        resp = client.get("/api/sales?start=2000-01-01", headers=cashier_headers)
        assert resp.status_code == 400

    def test_get_sale(self, client, cashier_headers, make_product):
        product = make_product(stock=10, price="3.00")
        sale = self._sell(client, cashier_headers, product, qty=2)

        resp = client.get(f"/api/sales/{sale['id']}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["items"][0]["quantity"] == 2
        assert resp.json["items"][0]["unit_price"] == "3.00"
        assert client.get("/api/sales/999", headers=cashier_headers).status_code == 404


class TestSaleStatusRoute:
    def test_refund_restores_stock(self, client, admin_headers, cashier_headers, make_product):
        product = make_product(stock=4)
        sale = client.post("/api/sales", headers=cashier_headers, json={
            "payment_method": "card",
            "items": [{"product_id": product.id, "quantity": 3}],
        }).json["sale"]

        resp = client.patch(f"/api/sales/{sale['id']}/status", headers=admin_headers,
                            json={"status": "refunded", "reason": "faulty"})
        assert resp.status_code == 200
        assert resp.json["sale"]["status"] == "refunded"
        assert db.session.get(Product, product.id).stock == 4

        resp = client.patch(f"/api/sales/{sale['id']}/status", headers=admin_headers,
                            json={"status": "cancelled"})
        assert resp.status_code == 409

    def test_cashier_cannot_change_status(self, client, cashier_headers, make_product):
        product = make_product()
        sale = client.post("/api/sales", headers=cashier_headers, json={
            "payment_method": "card",
            "items": [{"product_id": product.id, "quantity": 1}],
        }).json["sale"]

        resp = client.patch(f"/api/sales/{sale['id']}/status", headers=cashier_headers,
                            json={"status": "cancelled"})
        assert resp.status_code == 403

    def test_missing_status(self, client, admin_headers):
        resp = client.patch("/api/sales/1/status", headers=admin_headers, json={})
        assert resp.status_code == 400
