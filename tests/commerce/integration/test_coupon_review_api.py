"""Integration tests for coupon and review endpoints via TestClient."""


def _create_coupon(client, **overrides):
    payload = {"code": "run10", "discountType": "PERCENTAGE", "discountValue": 10, "maxDiscount": 5}
    payload.update(overrides)
    response = client.post("/coupons", json=payload)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["id"]


class TestCoupons:
    def test_validate_quote(self, client):
        _create_coupon(client)
        response = client.post("/coupons/validate", json={"code": "RUN10", "orderAmount": 30})
        data = response.json()["data"]
        assert response.status_code == 200
        assert data["code"] == "RUN10"
        assert data["discount"] == 3.0
        assert data["finalAmount"] == 27.0

    def test_validate_applies_cap(self, client):
        _create_coupon(client)
        data = client.post("/coupons/validate", json={"code": "run10", "orderAmount": 200}).json()["data"]
        assert data["discount"] == 5.0

    def test_unknown_code_is_400(self, client):
        response = client.post("/coupons/validate", json={"code": "NOPE", "orderAmount": 30})
        body = response.json()
        assert response.status_code == 400
        assert body["message"] == "Invalid coupon code"

    def test_duplicate_code_is_400(self, client):
        _create_coupon(client)
        response = client.post("/coupons", json={"code": "RUN10", "discountType": "FIXED_AMOUNT", "discountValue": 1})
        assert response.status_code == 400

    def test_deactivated_coupon_no_longer_validates(self, client):
        coupon_id = _create_coupon(client)

        response = client.put(f"/coupons/{coupon_id}/deactivate")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == coupon_id

        response = client.post("/coupons/validate", json={"code": "RUN10", "orderAmount": 30})
        assert response.status_code == 400
        assert response.json()["errors"]["coupon_code"] == ["Coupon is inactive"]

    def test_deactivating_twice_is_400(self, client):
        coupon_id = _create_coupon(client)
        client.put(f"/coupons/{coupon_id}/deactivate")
        response = client.put(f"/coupons/{coupon_id}/deactivate")
        assert response.status_code == 400

    def test_deactivating_unknown_coupon_is_404(self, client):
        assert client.put("/coupons/missing/deactivate").status_code == 404


class TestReviews:
    def _delivered_order(self, client, address, stock_cart):
        payload = {
            "customerId": "cust-001",
            "items": [{"productId": "prod-001", "quantity": 2, "price": 30.0}],
            "shippingAddress": address,
            "paymentMethod": "card",
            "shippingMethod": "express",
            "subtotal": 60.0,
            "shippingFee": 15.0,
            "tax": 6.0,
            "discount": 0.0,
            "totalAmount": 81.0,
        }
        stock_cart("cust-001", payload["items"])
        order_id = client.post("/orders", json=payload).json()["data"]["id"]
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            assert client.put(f"/orders/{order_id}/status", json={"status": status}).status_code == 200
        return order_id

    def test_submit_review(self, client, address, stock_cart):
        order_id = self._delivered_order(client, address, stock_cart)
        response = client.post(
            "/reviews",
            json={"orderId": order_id, "productId": "prod-001", "customerId": "cust-001", "rating": 5},
        )
        assert response.status_code == 201
        assert response.json()["data"]["id"]

    def test_review_before_delivery_is_400(self, client, address, stock_cart):
        payload = {
            "customerId": "cust-001",
            "items": [{"productId": "prod-001", "quantity": 1, "price": 30.0}],
            "shippingAddress": address,
            "paymentMethod": "cod",
            "subtotal": 30.0,
            "shippingFee": 5.0,
            "tax": 3.0,
            "totalAmount": 38.0,
        }
        stock_cart("cust-001", payload["items"])
        order_id = client.post("/orders", json=payload).json()["data"]["id"]
        response = client.post(
            "/reviews",
            json={"orderId": order_id, "productId": "prod-001", "customerId": "cust-001", "rating": 4},
        )
        assert response.status_code == 400
