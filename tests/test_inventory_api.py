"""
Inventory HTTP surface via FastAPI's TestClient.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from inventory_service.api import dependencies, health
from inventory_service.api.dependencies import get_product_client
from inventory_service.clients.product_client import ProductLookupError
from inventory_service.core.config import get_settings
from inventory_service.db.database import Base
from inventory_service.main import app


@pytest.fixture
def client(products):
    sync_engine = create_engine(get_settings().database_url.replace("+aiosqlite", ""))
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    app.dependency_overrides[get_product_client] = lambda: products
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def purchase_body(product_id, quantity):
    return {"data": {"type": "compras", "attributes": {"productoId": product_id, "cantidad": quantity}}}


def first_error(response):
    return response.json()["errors"][0]


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "inventory-service"
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["dependencies"]["database"] == "ok"
    assert "redis" not in health.json()["dependencies"]


def test_create_and_get_stock(client):
    created = client.post("/inventario/1", params={"cantidad": 10})
    assert created.status_code == 201
    data = created.json()["data"]
    assert data["type"] == "inventario"
    assert data["id"] == "1"
    assert data["attributes"]["cantidad"] == 10

    fetched = client.get("/inventario/1").json()["data"]["attributes"]
    assert fetched["productoId"] == 1
    assert fetched["cantidad"] == 10
    assert "fechaCreacion" in fetched and "fechaActualizacion" in fetched


def test_duplicate_and_missing_stock_are_400(client):
    client.post("/inventario/1", params={"cantidad": 10})

    duplicate = client.post("/inventario/1", params={"cantidad": 3})
    assert duplicate.status_code == 400
    assert first_error(duplicate)["title"] == "Already exists"

    missing = client.get("/inventario/999")
    assert missing.status_code == 400
    error = first_error(missing)
    assert error["status"] == "400"
    assert "999" in error["detail"]
    assert "timestamp" in error


def test_patch_sets_quantity(client):
    client.post("/inventario/1", params={"cantidad": 10})

    patched = client.patch("/inventario/1", json={"data": {"attributes": {"cantidad": 4}}})
    assert patched.status_code == 200
    assert patched.json()["data"]["attributes"]["cantidad"] == 4

    negative = client.patch("/inventario/1", json={"data": {"attributes": {"cantidad": -4}}})
    assert negative.status_code == 400


def test_purchase_flow(client, products):
    products.add(1, "Laptop Stand", "12.50")
    client.post("/inventario/1", params={"cantidad": 10})

    response = client.post("/inventario/compras", json=purchase_body(1, 3))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["type"] == "compras"
    attributes = data["attributes"]
    assert attributes["precioUnitario"] == "12.50"
    assert attributes["precioTotal"] == "37.50"
    assert attributes["nombreProducto"] == "Laptop Stand"
    assert attributes["inventarioRestante"] == 7
    assert client.get("/inventario/1").json()["data"]["attributes"]["cantidad"] == 7

    history = client.get("/inventario/compras", params={"productoId": 1}).json()["data"]
    assert [h["id"] for h in history] == [data["id"]]


def test_purchase_failures(client, products, monkeypatch):
    products.add(1, "Laptop Stand", "12.50")
    client.post("/inventario/1", params={"cantidad": 2})

    short = client.post("/inventario/compras", json=purchase_body(1, 5))
    assert short.status_code == 400
    assert "available=2, requested=5" in first_error(short)["detail"]

    unknown = client.post("/inventario/compras", json=purchase_body(77, 1))
    assert unknown.status_code == 400

    zero = client.post("/inventario/compras", json=purchase_body(1, 0))
    assert zero.status_code == 400

    products.error = ProductLookupError("breaker open")
    placeholder = client.post("/inventario/compras", json=purchase_body(1, 1))
    assert placeholder.status_code == 201
    attributes = placeholder.json()["data"]["attributes"]
    assert attributes["nombreProducto"] == "product unavailable"
    assert attributes["precioTotal"] == "0.00"

    monkeypatch.setattr(dependencies.settings, "DEGRADED_LOOKUP_POLICY", "reject")
    unavailable = client.post("/inventario/compras", json=purchase_body(1, 1))
    assert unavailable.status_code == 503
    assert client.get("/inventario/1").json()["data"]["attributes"]["cantidad"] == 1


def test_validation_errors_carry_field_map(client):
    response = client.post("/inventario/compras", json={"data": {"attributes": {"productoId": 1}}})
    assert response.status_code == 400
    assert "data.attributes.cantidad" in first_error(response)["errors"]

    bad_query = client.post("/inventario/1", params={"cantidad": "lots"})
    assert bad_query.status_code == 400
    assert "cantidad" in first_error(bad_query)["errors"]


def test_listings_and_statistics(client):
    for product_id, quantity in [(1, 0), (2, 3), (3, 40)]:
        client.post(f"/inventario/{product_id}", params={"cantidad": quantity})

    assert len(client.get("/inventario").json()["data"]) == 3
    low = client.get("/inventario/bajos").json()["data"]
    assert [item["attributes"]["cantidad"] for item in low] == [0, 3]
    assert len(client.get("/inventario/bajos", params={"cantidadMinima": 1}).json()["data"]) == 1
    assert [item["id"] for item in client.get("/inventario/sin-stock").json()["data"]] == ["1"]

    stats = client.get("/inventario/estadisticas")
    assert stats.headers["content-type"].startswith("text/plain")
    assert "- Total products: 3" in stats.text
    assert "- Total quantity in stock: 43" in stats.text
    assert "- Products without stock: 1" in stats.text


def test_recent_purchases_and_summary(client, products):
    products.add(1, "Desk Lamp", "20.00")
    products.add(2, "Notebook", "2.50")
    client.post("/inventario/1", params={"cantidad": 10})
    client.post("/inventario/2", params={"cantidad": 10})
    for product_id, quantity in [(1, 2), (2, 4), (2, 1)]:
        assert client.post("/inventario/compras", json=purchase_body(product_id, quantity)).status_code == 201

    recent = client.get("/inventario/compras/recientes", params={"limite": 2}).json()["data"]
    assert [item["attributes"]["cantidad"] for item in recent] == [1, 4]
    assert client.get("/inventario/compras/recientes", params={"limite": 0}).status_code == 400

    summary = client.get("/inventario/compras/resumen").json()["data"]
    assert summary["type"] == "resumen-compras"
    assert summary["attributes"]["totalCompras"] == 3
    assert summary["attributes"]["ingresos"] == "52.50"
    assert [(p["productoId"], p["unidadesVendidas"], p["ingresos"]) for p in summary["attributes"]["productos"]] == [
        (1, 2, "40.00"),
        (2, 5, "12.50"),
    ]

    half_range = client.get("/inventario/compras/resumen", params={"desde": "2024-01-01T00:00:00Z"})
    assert half_range.status_code == 400


def test_health_reports_failing_database(client, monkeypatch):
    async def unreachable():
        raise ConnectionError("connection refused")

    monkeypatch.setattr(health, "_ping_database", unreachable)
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["dependencies"]["database"] == "error: connection refused"
