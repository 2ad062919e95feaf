"""Dispatch Load Testing: Locust entry point.

Imports every user class from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Mixed workload only:
    locust -f loadtests/locustfile.py MixedWorkloadUser

    # Assignment contention:
    locust -f loadtests/locustfile.py ContendedAssignmentUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py MixedWorkloadUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.mixed import MixedWorkloadUser  # noqa: F401
from loadtests.scenarios.stress import ContendedAssignmentUser, RequestFloodUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Shows "InvalidTransitionError: Cannot transition from pending to in-progress"
    instead of just "409".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print the run's financial overview so the load shows up in the numbers."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        resp = requests.get(f"{environment.host}/financials/overview", params={"period": "today"}, timeout=5)
        overview = resp.json()
        stats = overview.get("delivery_stats", {})
        print(
            f"[LOADTEST] Deliveries today: {stats.get('total', 0)} "
            f"(delivered {stats.get('delivered', 0)}, cancelled {stats.get('cancelled', 0)}), "
            f"revenue {overview.get('total_revenue', 0)}"
        )
        print()
    except Exception as e:
        print(f"[LOADTEST] Could not fetch financial overview: {e}\n")
