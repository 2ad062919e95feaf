"""Mixed dispatch workload scenario.

Combines the delivery and bulk journeys with read traffic, weighted to model
a normal operating day. This is the recommended scenario for a load baseline.
"""

from locust import HttpUser, between, task

from loadtests.scenarios.bulk import BulkDispatchJourney
from loadtests.scenarios.deliveries import (
    DeliveryCancellationJourney,
    DeliveryLifecycleJourney,
    ReassignmentJourney,
)


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    - Full delivery lifecycle: most common
    - Bulk dispatch: admins clearing the morning queue
    - Cancellation and reassignment: occasional
    - Dashboard reads: deliveries list and financial overview
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        DeliveryLifecycleJourney: 10,
        BulkDispatchJourney: 3,
        DeliveryCancellationJourney: 2,
        ReassignmentJourney: 2,
    }

    @task(4)
    def dashboard(self):
        self.client.get("/deliveries", name="GET /deliveries")
        self.client.get("/financials/overview", params={"period": "today"}, name="GET /financials/overview")
