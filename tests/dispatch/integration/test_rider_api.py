"""Integration tests for Rider API endpoints via TestClient."""

import pytest
from dispatch.api import delivery_router, register_dispatch_exception_handlers, rider_router
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(delivery_router)
    app.include_router(rider_router)
    register_exception_handlers(app)
    register_dispatch_exception_handlers(app)
    return TestClient(app)


def _register(client, name="Kofi", rider_code="RKOFI"):
    response = client.post("/riders", json={"name": name, "phone": "0241234567", "rider_code": rider_code})
    assert response.status_code == 201
    return response.json()["rider_id"]


def _assigned_delivery(client, rider_id):
    delivery_id = client.post(
        "/deliveries",
        json={
            "name": "Ama",
            "contact": "0201234567",
            "item_description": "Laptop",
            "pickup_point": "Legon",
            "dropoff_point": "Osu",
            "delivery_type": "instant",
        },
    ).json()["id"]
    client.put(f"/deliveries/{delivery_id}/authorize", json={"actor": "admin"})
    client.put(f"/deliveries/{delivery_id}/assign", json={"rider_id": rider_id})
    return delivery_id


class TestRiderAdminAPI:
    def test_register_and_fetch(self, client):
        rider_id = _register(client)
        response = client.get(f"/riders/{rider_id}")
        assert response.status_code == 200
        assert response.json()["rider_code"] == "RKOFI"
        assert response.json()["status"] == "active"

    def test_duplicate_code_is_400(self, client):
        _register(client)
        response = client.post("/riders", json={"name": "Esi", "phone": "0240000000", "rider_code": "rkofi"})
        assert response.status_code == 400

    def test_list_by_status(self, client):
        kofi = _register(client)
        _register(client, name="Esi", rider_code="RESI")
        client.put(f"/riders/{kofi}/status", json={"status": "offline"})
        response = client.get("/riders", params={"status": "active"})
        assert [r["name"] for r in response.json()] == ["Esi"]

    def test_unknown_rider_is_404(self, client):
        assert client.get("/riders/nobody").status_code == 404

    def test_designate_default(self, client):
        kofi = _register(client)
        esi = _register(client, name="Esi", rider_code="RESI")
        client.put(f"/riders/{kofi}/default")
        client.put(f"/riders/{esi}/default")
        assert client.get(f"/riders/{esi}").json()["is_default_delivery_rider"] is True
        assert client.get(f"/riders/{kofi}").json()["is_default_delivery_rider"] is False


class TestRiderSelfServiceAPI:
    def test_rider_sees_own_deliveries(self, client):
        rider_id = _register(client)
        delivery_id = _assigned_delivery(client, rider_id)
        response = client.get("/riders/code/rkofi/deliveries")
        assert response.status_code == 200
        assert response.json()["rider"]["name"] == "Kofi"
        assert [d["id"] for d in response.json()["deliveries"]] == [delivery_id]

    def test_unknown_code_is_404(self, client):
        assert client.get("/riders/code/NOPE/deliveries").status_code == 404

    def test_rider_reports_progress(self, client):
        rider_id = _register(client)
        delivery_id = _assigned_delivery(client, rider_id)
        response = client.post(
            "/riders/code/RKOFI/updates",
            json={"updates": [{"delivery_id": delivery_id, "status": "in-progress", "notes": "Picked up"}]},
        )
        assert response.status_code == 200
        assert response.json()["succeeded"] == [delivery_id]
        stored = client.get(f"/deliveries/{delivery_id}").json()
        assert stored["status"] == "in-progress"
        assert stored["notes"] == "Rider Note: Picked up"

    def test_update_for_someone_elses_delivery_fails_item(self, client):
        kofi = _register(client)
        _register(client, name="Esi", rider_code="RESI")
        delivery_id = _assigned_delivery(client, kofi)
        response = client.post(
            "/riders/code/RESI/updates",
            json={"updates": [{"delivery_id": delivery_id, "status": "delivered"}]},
        )
        assert response.json()["failed"][0]["error"] == "ValidationError"
