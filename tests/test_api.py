# tests/test_api.py
from decimal import Decimal

from fastapi.testclient import TestClient

from billing import main

client = TestClient(main.app)


def reset():
    client.post("/reset")


def seed(identifier="p1", price="1.99", product_type="product"):
    r = client.post("/store/products", json={
        "identifier": identifier, "title": "Tst", "price": price,
        "currency_code": "USD", "formatted_price": f"${price}", "type": product_type,
    })
    assert r.status_code == 201


def test_fetch_products_and_purchase():
    reset()
    seed("p1", "1.99")
    r = client.post("/products/fetch", json={"identifiers": ["p1", "p9"]})
    assert r.status_code == 200
    [product] = r.json()
    assert product["identifier"] == "p1"
    assert Decimal(product["price"]) == Decimal("1.99")
    assert product["currency_code"] == "USD"

    r2 = client.post("/purchase", json={"identifier": "p1"})
    assert r2.status_code == 200
    assert r2.json() == ["p1"]

    r3 = client.get("/purchases")
    assert r3.status_code == 200
    assert r3.json() == ["p1"]

    state = client.get("/debug/state").json()
    assert state["unacknowledged"] == []
    assert state["pending"]["purchases"] == 0


def test_purchase_errors():
    reset()
    r = client.post("/purchase", json={"identifier": "p1"})
    assert r.status_code == 404

    seed("p1")
    client.post("/products/fetch", json={"identifiers": ["p1"]})
    client.post("/store/settings", json={"declined": ["p1"]})
    r2 = client.post("/purchase", json={"identifier": "p1"})
    assert r2.status_code == 402
    assert r2.json()["detail"]["message"] == "Failed to make a payment!"


def test_store_failures():
    reset()
    client.post("/store/settings", json={"fail_products": True, "fail_restore": True})
    assert client.post("/products/fetch", json={"identifiers": ["p1"]}).status_code == 502
    r = client.get("/purchases")
    assert r.status_code == 502
    assert r.json()["detail"]["message"] == "Failed to restore purchases!"


def test_method_channel():
    reset()
    seed("p1")
    client.post("/store/settings", json={"owned": ["legacy"]})
    r = client.post("/method/fetchProducts", json={"identifiers": ["p1"]})
    assert r.json()["result"][0]["identifier"] == "p1"
    assert client.post("/method/purchase", json={"identifier": "p1"}).json() == {"result": ["p1"]}
    assert client.post("/method/fetchPurchases").json() == {"result": ["p1", "legacy"]}

    assert client.post("/method/purchase", json={}).status_code == 400
    assert client.post("/method/subscribe", json={}).status_code == 400
    assert client.post("/method/getReceipt", json={}).status_code == 501


def test_subscriptions_and_consumables():
    reset()
    seed("coins", "0.99")
    seed("gold", "4.99", product_type="subscription")

    r = client.post("/subscriptions/fetch", json={"identifiers": ["gold", "coins"]})
    assert r.status_code == 200
    assert [(p["identifier"], p["type"]) for p in r.json()] == [("gold", "subscription")]
    assert client.post("/subscribe", json={"identifier": "gold"}).json() == ["gold"]

    client.post("/products/fetch", json={"identifiers": ["coins"]})
    r2 = client.post("/purchase", json={"identifier": "coins", "consume": True})
    assert r2.status_code == 200
    assert r2.json() == ["gold", "coins"]
    assert client.get("/purchases").json() == ["gold"]


def test_subscribe_when_store_lacks_support():
    reset()
    seed("gold", "4.99", product_type="subscription")
    client.post("/subscriptions/fetch", json={"identifiers": ["gold"]})
    settings = client.post("/store/settings", json={"supports_subscriptions": False}).json()
    assert settings["supports_subscriptions"] is False
    r = client.post("/subscribe", json={"identifier": "gold"})
    assert r.status_code == 501
    assert r.json()["detail"]["message"] == "Subscriptions are not supported."
