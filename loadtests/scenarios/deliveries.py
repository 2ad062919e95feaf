"""Single-delivery load test scenarios.

Stateful SequentialTaskSet journeys covering the full lifecycle from request
to delivery by the rider, cancellation after assignment, and the
release-and-reassign path.
"""

import random

from locust import SequentialTaskSet, task

from loadtests.data_generators import cancellation_reason, delivery_data, payment_data, rider_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import DeliveryState


class _DeliveryJourney(SequentialTaskSet):
    """Shared setup: one rider and one pending delivery per journey."""

    def on_start(self):
        self.state = DeliveryState()

    def _register_rider(self):
        payload = rider_data()
        with self.client.post("/riders", json=payload, catch_response=True, name="POST /riders") as resp:
            if resp.status_code == 201:
                self.state.rider_id = resp.json()["rider_id"]
                self.state.rider_code = payload["rider_code"]
            else:
                resp.failure(f"Register rider failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _request_delivery(self):
        with self.client.post(
            "/deliveries",
            json=delivery_data(),
            catch_response=True,
            name="POST /deliveries",
        ) as resp:
            if resp.status_code == 201:
                self.state.delivery_id = resp.json()["id"]
            else:
                resp.failure(f"Request delivery failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _put(self, suffix: str, json: dict | None, expected_status: str):
        with self.client.put(
            f"/deliveries/{self.state.delivery_id}/{suffix}",
            json=json,
            catch_response=True,
            name=f"PUT /deliveries/{{id}}/{suffix}",
        ) as resp:
            if resp.status_code == 200 and resp.json()["status"] == expected_status:
                self.state.current_status = expected_status
            else:
                resp.failure(f"{suffix} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class DeliveryLifecycleJourney(_DeliveryJourney):
    """Register Rider -> Request -> Authorize -> Assign -> Rider starts -> Rider delivers -> Paid.

    The happy path. Each step fans a notification out through the relay.
    """

    @task
    def register_rider(self):
        self._register_rider()

    @task
    def request_delivery(self):
        self._request_delivery()

    @task
    def authorize(self):
        self._put("authorize", {"actor": "loadtest-admin"}, "authorized")

    @task
    def assign(self):
        self._put("assign", {"actor": "loadtest-admin", "rider_id": self.state.rider_id}, "assigned")

    @task
    def rider_checks_queue(self):
        self.client.get(f"/riders/code/{self.state.rider_code}/deliveries", name="GET /riders/code/{code}/deliveries")

    @task
    def rider_starts(self):
        self._rider_update("in-progress", "Picked up")

    @task
    def rider_delivers(self):
        self._rider_update("delivered", "Handed to customer")

    @task
    def record_payment(self):
        with self.client.put(
            f"/deliveries/{self.state.delivery_id}/payment",
            json=payment_data(),
            catch_response=True,
            name="PUT /deliveries/{id}/payment",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Payment write-back failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def check_sla(self):
        self.client.get(f"/deliveries/{self.state.delivery_id}/sla", name="GET /deliveries/{id}/sla")

    @task
    def done(self):
        self.interrupt()

    def _rider_update(self, status: str, notes: str):
        with self.client.post(
            f"/riders/code/{self.state.rider_code}/updates",
            json={"updates": [{"delivery_id": self.state.delivery_id, "status": status, "notes": notes}]},
            catch_response=True,
            name="POST /riders/code/{code}/updates",
        ) as resp:
            if resp.status_code == 200 and resp.json()["success"]:
                self.state.current_status = status
            else:
                resp.failure(f"Rider update to {status} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class DeliveryCancellationJourney(_DeliveryJourney):
    """Register Rider -> Request -> Authorize -> Assign -> Cancel.

    The unhappy path: an assigned delivery is called off.
    """

    @task
    def register_rider(self):
        self._register_rider()

    @task
    def request_delivery(self):
        self._request_delivery()

    @task
    def authorize(self):
        self._put("authorize", {"actor": "loadtest-admin"}, "authorized")

    @task
    def assign(self):
        self._put("assign", {"rider_id": self.state.rider_id}, "assigned")

    @task
    def cancel(self):
        self._put("cancel", {"actor": "loadtest-admin", "reason": cancellation_reason()}, "cancelled")

    @task
    def done(self):
        self.interrupt()


class ReassignmentJourney(_DeliveryJourney):
    """Request -> Authorize -> Assign -> Release -> Assign again.

    Exercises the release edge back to authorized.
    """

    @task
    def register_rider(self):
        self._register_rider()

    @task
    def request_delivery(self):
        self._request_delivery()

    @task
    def authorize(self):
        self._put("authorize", {"actor": "loadtest-admin"}, "authorized")

    @task
    def assign(self):
        self._put("assign", {"rider_id": self.state.rider_id}, "assigned")

    @task
    def release(self):
        self._put("release", {"actor": "loadtest-admin"}, "authorized")

    @task
    def reassign(self):
        self._put("assign", {"rider_id": self.state.rider_id}, "assigned")

    @task
    def maybe_browse(self):
        if random.random() < 0.5:
            self.client.get("/deliveries", params={"status": "assigned"}, name="GET /deliveries?status")

    @task
    def done(self):
        self.interrupt()
