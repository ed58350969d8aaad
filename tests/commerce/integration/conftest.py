import pytest
from commerce.api import (
    cart_router,
    coupon_router,
    order_router,
    register_exception_handlers,
    review_router,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(coupon_router)
    app.include_router(review_router)
    return TestClient(app)


@pytest.fixture()
def address():
    return {"fullName": "Jane Runner", "phone": "0900000000", "street": "1 Track Lane", "city": "Hanoi"}


@pytest.fixture()
def stock_cart(client):
    """Fill a customer's server cart with the given order lines, replacing its contents."""

    def _stock(customer_id, items):
        cart_id = client.post("/carts", json={"customerId": customer_id}).json()["data"]["id"]
        client.delete(f"/carts/{cart_id}/items")
        for item in items:
            line = {key: value for key, value in item.items() if key != "price"}
            response = client.post(f"/carts/{cart_id}/items", json={**line, "unitPrice": item["price"]})
            assert response.status_code == 200, response.json()
        return cart_id

    return _stock
