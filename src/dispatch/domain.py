"""Dispatch bounded context: delivery requests, rider assignment and SLA tracking.

Customers request deliveries, staff authorize them, riders get assigned and
carry them through to delivered. Uses CQRS: each delivery is a plain aggregate
and every status change is computed first and committed with a compare-and-set
on the status the change was computed from.
"""

from protean.domain import Domain

from dispatch.utils.logging import configure_logging

configure_logging()

dispatch = Domain(name="dispatch")
