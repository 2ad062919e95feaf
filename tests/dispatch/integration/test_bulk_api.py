"""Integration tests for bulk delivery endpoints via TestClient."""

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


def _request_deliveries(client, count):
    ids = []
    for _ in range(count):
        response = client.post(
            "/deliveries",
            json={
                "name": "Ama Mensah",
                "contact": "0201234567",
                "item_description": "Parcel",
                "pickup_point": "Legon",
                "dropoff_point": "Osu",
                "delivery_type": "next-day",
            },
        )
        ids.append(response.json()["id"])
    return ids


class TestBulkAuthorizeAPI:
    def test_partial_success_is_200_with_both_lists(self, client):
        ids = _request_deliveries(client, 2)
        response = client.post(
            "/deliveries/bulk/authorize",
            json={"delivery_ids": [*ids, "no-such-delivery"], "actor": "admin"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["operation"] == "authorize"
        assert body["total"] == 3
        assert body["succeeded"] == ids
        assert body["failed"] == [
            {"id": "no-such-delivery", "error": "NotFoundError", "message": "Delivery no-such-delivery not found"}
        ]
        assert body["message"] == "Authorized 2 deliveries, 1 failed"

    def test_missing_actor_is_400(self, client):
        ids = _request_deliveries(client, 1)
        response = client.post("/deliveries/bulk/authorize", json={"delivery_ids": ids})
        assert response.status_code == 400

    def test_empty_list_is_400(self, client):
        response = client.post("/deliveries/bulk/authorize", json={"delivery_ids": [], "actor": "admin"})
        assert response.status_code == 400


class TestBulkAssignAPI:
    def test_assign_to_named_rider(self, client):
        rider_id = client.post("/riders", json={"name": "Kofi", "phone": "0241234567"}).json()["rider_id"]
        ids = _request_deliveries(client, 2)
        client.post("/deliveries/bulk/authorize", json={"delivery_ids": ids, "actor": "admin"})

        response = client.post("/deliveries/bulk/assign", json={"delivery_ids": ids, "rider_id": rider_id})

        assert response.json()["success"] is True
        assert response.json()["message"] == "Assigned 2 deliveries to Kofi"

    def test_unknown_rider_is_404(self, client):
        ids = _request_deliveries(client, 1)
        response = client.post("/deliveries/bulk/assign", json={"delivery_ids": ids, "rider_id": "nobody"})
        assert response.status_code == 404


class TestBulkStatusAndCancelAPI:
    def test_assigned_status_is_400(self, client):
        ids = _request_deliveries(client, 1)
        response = client.post("/deliveries/bulk/status", json={"delivery_ids": ids, "status": "assigned"})
        assert response.status_code == 400

    def test_bulk_cancel(self, client):
        ids = _request_deliveries(client, 3)
        response = client.post("/deliveries/bulk/cancel", json={"delivery_ids": ids, "reason": "Closed for holiday"})
        assert response.json()["succeeded"] == ids
        assert response.json()["message"] == "Cancelled 3 deliveries"
        assert client.get(f"/deliveries/{ids[0]}").json()["cancellation_reason"] == "Closed for holiday"
