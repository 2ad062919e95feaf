"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state. State tracks ids returned by
creation endpoints so follow-up requests can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class DeliveryState:
    """Tracks a single delivery through its lifecycle."""

    delivery_id: str | None = None
    rider_id: str | None = None
    rider_code: str | None = None
    current_status: str = "pending"


@dataclass
class BatchState:
    """Tracks a batch of deliveries handled through the bulk endpoints."""

    delivery_ids: list[str] = field(default_factory=list)
    rider_ids: list[str] = field(default_factory=list)
    assigned: dict[str, str] = field(default_factory=dict)
