from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def dispatch_bed():
    from dispatch.domain import dispatch

    bed = DomainFixture(dispatch)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dispatch_bed):
    with dispatch_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def notifier():
    """A fresh FakeNotifier per test; queued notifications are flushed afterwards."""
    from dispatch.notification import get_notifier, relay, reset_notifier

    reset_notifier()
    yield get_notifier()
    relay.drain()
    reset_notifier()


@pytest.fixture()
def make_rider():
    """Store a rider. Riders made later in a test are younger (later created_at)."""
    from dispatch.rider.rider import Rider

    base = datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
    made = []

    def _make(name="Kwame", status="active", is_default=False, rider_code=None, phone="0240000000"):
        rider = Rider(
            name=name,
            phone=phone,
            whatsapp=phone,
            rider_code=rider_code or f"R{len(made) + 1:03d}{name[:3].upper()}",
            status=status,
            is_default_delivery_rider=is_default,
            created_at=base + timedelta(minutes=len(made)),
        )
        current_domain.repository_for(Rider).add(rider)
        made.append(rider)
        return current_domain.repository_for(Rider).get(rider.id)

    return _make


@pytest.fixture()
def make_delivery():
    """Create a stored pending delivery through the creation service."""
    from dispatch.delivery.creation import create_delivery

    def _make(**overrides):
        fields = {
            "customer_name": "Ama Mensah",
            "contact": "0201234567",
            "user_email": "ama@example.com",
            "item_description": "Box of books",
            "pickup_point": "Legon Hall",
            "dropoff_point": "Osu Oxford Street",
            "delivery_type": "instant",
        }
        fields.update(overrides)
        return create_delivery(**fields)

    return _make


@pytest.fixture()
def advance():
    """Walk a stored delivery forward to ``status`` through the transition service."""
    from dispatch.delivery import transitions

    def _advance(delivery_id, status, rider_id=None, actor="admin@dispatch"):
        delivery_id = str(delivery_id)
        steps = ["authorized", "assigned", "in-progress", "delivered"]
        delivery = None
        for step in steps[: steps.index(status) + 1]:
            if step == "authorized":
                delivery = transitions.authorize(delivery_id, actor)
            elif step == "assigned":
                delivery = transitions.assign(delivery_id, actor=actor, rider_id=rider_id)
            else:
                delivery = transitions.transition(delivery_id, step, actor=actor)
        return delivery

    return _advance
