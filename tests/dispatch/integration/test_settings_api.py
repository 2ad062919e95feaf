"""Integration tests for settings and financials endpoints via TestClient."""

import pytest
from dispatch.api import (
    delivery_router,
    financials_router,
    register_dispatch_exception_handlers,
    settings_router,
)
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(delivery_router)
    app.include_router(settings_router)
    app.include_router(financials_router)
    register_exception_handlers(app)
    register_dispatch_exception_handlers(app)
    return TestClient(app)


class TestSettingsAPI:
    def test_defaults(self, client):
        body = client.get("/settings").json()
        assert body["pricing"] == {"instant": 10.0, "next_day": 7.0, "weekly_station": 5.0}
        assert body["auto_assignment"]["enabled"] is False
        assert body["sla"]["pending_to_authorized"] == 60

    def test_update_pricing(self, client):
        body = client.put("/settings/pricing", json={"instant": 15.0, "updated_by": "admin"}).json()
        assert body["pricing"]["instant"] == 15.0
        assert body["pricing"]["next_day"] == 7.0
        assert body["updated_by"] == "admin"

    def test_negative_price_is_400(self, client):
        assert client.put("/settings/pricing", json={"instant": -1.0}).status_code == 400

    def test_update_auto_assignment(self, client):
        body = client.put(
            "/settings/auto-assignment",
            json={"enabled": True, "balance_workload": True, "max_deliveries_per_rider": 3},
        ).json()
        assert body["auto_assignment"]["balance_workload"] is True
        assert body["auto_assignment"]["max_deliveries_per_rider"] == 3

    def test_update_sla(self, client):
        body = client.put("/settings/sla", json={"instant_delivery_max": 45}).json()
        assert body["sla"]["instant_delivery_max"] == 45

    def test_new_price_applies_to_new_deliveries(self, client):
        client.put("/settings/pricing", json={"instant": 20.0})
        delivery = client.post(
            "/deliveries",
            json={
                "name": "Ama",
                "contact": "020",
                "item_description": "Box",
                "pickup_point": "A",
                "dropoff_point": "B",
                "delivery_type": "instant",
            },
        ).json()
        assert delivery["price"] == 20.0
        assert delivery["rider_commission"] == 14.0


class TestFinancialsAPI:
    def test_overview(self, client):
        client.post(
            "/deliveries",
            json={
                "name": "Ama",
                "contact": "020",
                "item_description": "Box",
                "pickup_point": "A",
                "dropoff_point": "B",
                "delivery_type": "weekly-station",
            },
        )
        body = client.get("/financials/overview", params={"period": "all"}).json()
        assert body["total_revenue"] == 5.0
        assert body["revenue_by_type"]["weekly-station"] == 5.0

    def test_riders_report(self, client):
        assert client.get("/financials/riders").json() == {"period": "month", "riders": []}

    def test_trends_window_validated(self, client):
        assert client.get("/financials/trends", params={"days": 0}).status_code == 422
        assert client.get("/financials/trends", params={"days": 3}).json()["days"] == 3
