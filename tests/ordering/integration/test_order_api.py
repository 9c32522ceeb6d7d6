"""Integration tests for cart, order and admin order endpoints via TestClient."""

import pytest


@pytest.fixture
def products(create_product):
    return {
        "kurta": create_product(title="Cotton Kurta", price=50.0, quantity=10),
        "stole": create_product(title="Wool Stole", price=150.0, quantity=5),
    }


@pytest.fixture
def filled_cart(client, customer_headers, products):
    client.post("/cart/items", headers=customer_headers, json={"product_id": products["kurta"], "quantity": 2})
    client.post("/cart/items", headers=customer_headers, json={"product_id": products["stole"], "quantity": 1})
    return products


def _checkout(client, headers, **overrides):
    body = {
        "shipping_address": {"street": "12 MG Road", "city": "Pune", "pincode": "411001"},
        "payment_method": "cod",
    }
    body.update(overrides)
    return client.post("/orders", headers=headers, json=body)


class TestCartApi:
    def test_requires_customer(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Authentication required", "errors": []}

    def test_add_and_view(self, client, customer_headers, filled_cart):
        data = client.get("/cart", headers=customer_headers).json()["data"]
        assert data["subtotal"] == 250.0
        assert data["total"] == 335.0

    def test_add_over_stock_is_400(self, client, customer_headers, products):
        response = client.post(
            "/cart/items",
            headers=customer_headers,
            json={"product_id": products["stole"], "quantity": 6},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Cart validation failed"
        assert body["errors"][0]["action"] == "update"

    def test_add_unknown_product_is_404(self, client, customer_headers):
        response = client.post("/cart/items", headers=customer_headers, json={"product_id": "nope"})
        assert response.status_code == 404

    def test_zero_quantity_is_400(self, client, customer_headers, products):
        response = client.post(
            "/cart/items",
            headers=customer_headers,
            json={"product_id": products["kurta"], "quantity": 0},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "quantity"

    def test_update_beyond_stock_reports_available(self, client, customer_headers, filled_cart):
        item_id = client.get("/cart", headers=customer_headers).json()["data"]["items"][0]["item_id"]
        response = client.patch(f"/cart/items/{item_id}", headers=customer_headers, json={"quantity": 99})
        assert response.status_code == 400
        assert response.json()["message"] == "Insufficient stock available"
        assert "available_stock" in response.json()

    def test_validate(self, client, customer_headers, filled_cart):
        response = client.post("/cart/validate", headers=customer_headers)
        assert response.json()["data"] == {"valid": True, "issues": []}


class TestOrderApi:
    def test_checkout(self, client, customer_headers, filled_cart):
        response = _checkout(client, customer_headers)
        assert response.status_code == 201
        order = response.json()["data"]
        assert order["total"] == 335.0
        assert order["customer_email"] == "asha@example.com"
        assert client.get("/cart", headers=customer_headers).json()["data"]["items"] == []

    def test_checkout_with_string_address(self, client, customer_headers, filled_cart):
        response = _checkout(client, customer_headers, shipping_address="42 Residency Road")
        assert response.status_code == 201
        assert response.json()["data"]["shipping_address"]["pincode"] == "000000"

    def test_checkout_empty_cart(self, client, customer_headers):
        response = _checkout(client, customer_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_checkout_missing_street(self, client, customer_headers, filled_cart):
        response = _checkout(client, customer_headers, shipping_address={"city": "Pune"})
        assert response.status_code == 400
        assert response.json()["message"] == "Street address is required"

    def test_list_and_get(self, client, customer_headers, filled_cart):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        listing = client.get("/orders", headers=customer_headers).json()["data"]
        assert [o["id"] for o in listing["orders"]] == [order_id]
        assert client.get(f"/orders/{order_id}", headers=customer_headers).status_code == 200

    def test_other_customer_cannot_see_order(self, client, customer_headers, filled_cart):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        response = client.get(f"/orders/{order_id}", headers={"X-Customer-Id": "cust-999"})
        assert response.status_code == 404

    def test_cancel_twice(self, client, customer_headers, filled_cart):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        first = client.post(f"/orders/{order_id}/cancel", headers=customer_headers, json={"reason": "Too slow"})
        assert first.status_code == 200
        second = client.post(f"/orders/{order_id}/cancel", headers=customer_headers)
        assert second.status_code == 400
        assert second.json()["message"] == "Order cannot be cancelled at this stage"


class TestAdminOrderApi:
    def test_requires_permission(self, client):
        response = client.get("/admin/orders", headers={"X-Admin-Id": "a1", "X-Admin-Permissions": "products:manage"})
        assert response.status_code == 403

    def test_update_and_stats(self, client, customer_headers, admin_headers, filled_cart):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        response = client.patch(
            f"/admin/orders/{order_id}",
            headers=admin_headers,
            json={"status": "shipped", "tracking_id": "TRK-9"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["order"]["status"] == "shipped"
        assert data["status_update"]["tracking_added"] is True

        stats = client.get("/admin/orders/stats", headers=admin_headers).json()["data"]
        assert stats["summary"]["total_orders"] == 1
        assert stats["status_breakdown"]["shipped"]["count"] == 1

    def test_invalid_status_is_400(self, client, customer_headers, admin_headers, filled_cart):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        response = client.patch(f"/admin/orders/{order_id}", headers=admin_headers, json={"status": "lost"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"

    def test_admin_cancel(self, client, customer_headers, admin_headers, filled_cart, load_product):
        order_id = _checkout(client, customer_headers).json()["data"]["id"]
        response = client.post(f"/admin/orders/{order_id}/cancel", headers=admin_headers, json={"reason": "Fraud"})
        assert response.status_code == 200
        assert load_product(filled_cart["kurta"]).stock.quantity == 10
