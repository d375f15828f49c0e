"""HTTP tests for the FastAPI application."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from storefront.container import build_services
from storefront.main import create_app
from storefront.services.image_store import ImageStore


@pytest.fixture
def services(db, tmp_path):
    cache = MagicMock()
    cache.get_json.return_value = None
    services = build_services(
        db=db,
        cache=cache,
        images=ImageStore(directory=str(tmp_path / "images")),
        jwt_secret="test-secret",
    )
    services.auth.create_user("admin", "s3cret")
    return services


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as client:
        yield client


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/login", json={"username": "admin", "password": "s3cret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_login_wrong_password(client):
    response = client.post("/api/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"]["kind"] == "AuthenticationFailed"


def test_place_order(client, make_product, stock_of):
    p1 = make_product(price="10.00", stock=5)
    p2 = make_product(price="5.50", stock=5)

    response = client.post(
        "/api/orders",
        json={
            "customerName": "Ana",
            "address": "Street 1",
            "items": [{"productId": p1, "quantity": 2}, {"productId": p2, "quantity": 1}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total"] == "25.50"
    assert stock_of(p1) == 3


def test_place_order_insufficient_stock(client, make_product):
    p1 = make_product(name="Teapot", stock=1)

    response = client.post(
        "/api/orders",
        json={"customerName": "Ana", "address": "Street 1", "items": [{"productId": p1, "quantity": 3}]},
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["kind"] == "InsufficientStock"
    assert detail["productName"] == "Teapot"
    assert detail["available"] == 1
    assert detail["requested"] == 3


@pytest.mark.parametrize(
    "payload,status,kind",
    [
        ({"customerName": "Ana", "address": "Street 1", "items": []}, 400, "EmptyCart"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": 1, "quantity": 0}]}, 400, "InvalidQuantity"),
        ({"customerName": "", "address": "Street 1", "items": [{"productId": 1, "quantity": 1}]}, 400, "MissingCustomerDetails"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": 999, "quantity": 1}]}, 404, "ProductNotFound"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": 1, "quantity": True}]}, 400, "InvalidQuantity"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": 1, "quantity": 2.5}]}, 400, "InvalidQuantity"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": 1, "quantity": "2"}]}, 400, "InvalidQuantity"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"quantity": 1}]}, 404, "ProductNotFound"),
        ({"customerName": "Ana", "address": "Street 1", "items": [{"productId": "abc", "quantity": 1}]}, 404, "ProductNotFound"),
    ],
)
def test_place_order_errors(client, payload, status, kind):
    response = client.post("/api/orders", json=payload)

    assert response.status_code == status
    assert response.json()["detail"]["kind"] == kind


def test_boolean_quantity_places_nothing(client, make_product, stock_of, counts):
    p1 = make_product(stock=5)

    response = client.post(
        "/api/orders",
        json={"customerName": "Ana", "address": "Street 1", "items": [{"productId": p1, "quantity": True}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "InvalidQuantity"
    assert stock_of(p1) == 5
    assert counts() == (0, 0)


def test_place_order_idempotency_header(client, make_product, stock_of):
    p1 = make_product(stock=5)
    payload = {"customerName": "Ana", "address": "Street 1", "items": [{"productId": p1, "quantity": 1}]}
    headers = {"Idempotency-Key": "abc-123"}

    first = client.post("/api/orders", json=payload, headers=headers).json()
    second = client.post("/api/orders", json=payload, headers=headers).json()

    assert second["orderId"] == first["orderId"]
    assert second["replayed"] is True
    assert stock_of(p1) == 4


def test_order_endpoints_require_token(client):
    assert client.get("/api/orders/1").status_code == 401
    assert client.get("/api/orders/1", headers={"Authorization": "Bearer garbage"}).status_code == 403


def test_get_order_and_change_status(client, admin_headers, make_product):
    p1 = make_product(price="3.25", stock=5)
    order_id = client.post(
        "/api/orders",
        json={"customerName": "Ana", "address": "Street 1", "items": [{"productId": p1, "quantity": 2}]},
    ).json()["orderId"]

    order = client.get(f"/api/orders/{order_id}", headers=admin_headers).json()["data"]
    assert order["totalAmount"] == "6.50"
    assert order["items"][0]["priceAtTime"] == "3.25"

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "processing"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "processing"

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "InvalidTransition"


def test_get_missing_order(client, admin_headers):
    response = client.get("/api/orders/999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "OrderNotFound"


def test_product_lifecycle(client, admin_headers):
    response = client.post(
        "/api/products",
        data={"name": "Lamp", "price": "45.00", "stock": "3", "description": "Brass"},
        files={"image": ("lamp.png", b"png-bytes", "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    product = response.json()["data"]
    assert product["imageUrl"].startswith("/images/prod_")

    listing = client.get("/api/products").json()["data"]
    assert [p["name"] for p in listing] == ["Lamp"]

    response = client.put(f"/api/products/{product['id']}", data={"price": "40.00"}, headers=admin_headers)
    assert response.json()["data"]["price"] == "40.00"

    response = client.delete(f"/api/products/{product['id']}", headers=admin_headers)
    assert response.json()["success"] is True
    assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 404


def test_create_product_requires_admin(client):
    response = client.post("/api/products", data={"name": "Lamp", "price": "1.00", "stock": "1"})

    assert response.status_code == 401
