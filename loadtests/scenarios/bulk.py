"""Bulk operation load test scenarios.

An admin requests a batch of deliveries, authorizes them in one call and
spreads them over the active riders with workload-balanced auto-assignment.
"""

import random

from locust import SequentialTaskSet, task

from loadtests.data_generators import delivery_data, rider_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BatchState

BATCH_SIZE = 10
RIDERS_PER_BATCH = 3


class BulkDispatchJourney(SequentialTaskSet):
    """Register Riders -> Request Batch -> Bulk Authorize -> Bulk Assign -> Bulk Deliver.

    Partial failures are expected once several users share riders, so only a
    non-200 response counts as a failure.
    """

    def on_start(self):
        self.state = BatchState()

    @task
    def register_riders(self):
        for _ in range(RIDERS_PER_BATCH):
            resp = self.client.post("/riders", json=rider_data(), name="POST /riders")
            if resp.status_code == 201:
                self.state.rider_ids.append(resp.json()["rider_id"])

    @task
    def request_batch(self):
        for _ in range(BATCH_SIZE):
            resp = self.client.post("/deliveries", json=delivery_data(), name="POST /deliveries")
            if resp.status_code == 201:
                self.state.delivery_ids.append(resp.json()["id"])
        if not self.state.delivery_ids:
            self.interrupt()

    @task
    def bulk_authorize(self):
        self._bulk("authorize", {"actor": "loadtest-admin"})

    @task
    def bulk_assign(self):
        self._bulk("assign", {"actor": "loadtest-admin", "strategy": "least-busy"})

    @task
    def bulk_start(self):
        self._bulk("status", {"actor": "loadtest-admin", "status": "in-progress"})

    @task
    def bulk_deliver(self):
        self._bulk("status", {"actor": "loadtest-admin", "status": "delivered"})

    @task
    def check_breaches(self):
        if random.random() < 0.2:
            self.client.get("/deliveries/sla/breaches", name="GET /deliveries/sla/breaches")

    @task
    def done(self):
        self.interrupt()

    def _bulk(self, operation: str, params: dict):
        with self.client.post(
            f"/deliveries/bulk/{operation}",
            json={"delivery_ids": self.state.delivery_ids, **params},
            catch_response=True,
            name=f"POST /deliveries/bulk/{operation}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Bulk {operation} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
