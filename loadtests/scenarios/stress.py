"""Stress test scenarios for dispatch contention.

ContendedAssignmentUser races many users to assign the same few deliveries,
so the compare-and-set commit and its retries are exercised under load.
RequestFloodUser creates deliveries as fast as possible.
"""

import random

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import delivery_data, rider_data

# Deliveries shared by every ContendedAssignmentUser in the process
_SHARED_DELIVERIES: list[str] = []
_SHARED_POOL_SIZE = 5


class ContendedAssignmentUser(HttpUser):
    """Many users assigning and releasing the same deliveries.

    409 responses are the expected outcome of losing a race, so they are
    reported as successes.
    """

    wait_time = constant_pacing(0.1)

    def on_start(self):
        resp = self.client.post("/riders", json=rider_data(), name="[CONTEND] POST /riders")
        self.rider_id = resp.json()["rider_id"] if resp.status_code == 201 else None
        while len(_SHARED_DELIVERIES) < _SHARED_POOL_SIZE:
            created = self.client.post("/deliveries", json=delivery_data(), name="[CONTEND] POST /deliveries")
            if created.status_code != 201:
                break
            delivery_id = created.json()["id"]
            self.client.put(
                f"/deliveries/{delivery_id}/authorize",
                json={"actor": "loadtest-admin"},
                name="[CONTEND] PUT /deliveries/{id}/authorize",
            )
            _SHARED_DELIVERIES.append(delivery_id)

    @task(3)
    def assign(self):
        if not (self.rider_id and _SHARED_DELIVERIES):
            return
        with self.client.put(
            f"/deliveries/{random.choice(_SHARED_DELIVERIES)}/assign",
            json={"rider_id": self.rider_id},
            catch_response=True,
            name="[CONTEND] PUT /deliveries/{id}/assign",
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()

    @task(2)
    def release(self):
        if not _SHARED_DELIVERIES:
            return
        with self.client.put(
            f"/deliveries/{random.choice(_SHARED_DELIVERIES)}/release",
            json={"actor": "loadtest-admin"},
            catch_response=True,
            name="[CONTEND] PUT /deliveries/{id}/release",
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()


class RequestFloodUser(HttpUser):
    """Spike test: rapid-fire delivery requests.

    Spawn 50-100 of these at once to see how creation and the notification
    relay hold up under a burst.
    """

    wait_time = constant_pacing(0.05)

    @task
    def request_delivery(self):
        self.client.post("/deliveries", json=delivery_data(), name="[FLOOD] POST /deliveries")
