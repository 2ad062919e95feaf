"""Shared BDD fixtures and step definitions for the Dispatch domain."""

import pytest
from dispatch.delivery import transitions
from dispatch.delivery.persistence import load_delivery
from dispatch.errors import error_kind_of
from dispatch.notification import relay
from dispatch.settings.management import UpdateAutoAssignment
from protean import current_domain
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def riders():
    """Riders created by Given steps, by name, in creation order."""
    return {}


@pytest.fixture()
def error():
    """Container for the exception a When step was rejected with."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run an action; record a rejection in ``error`` instead of raising it."""

    def _attempt(action):
        try:
            return action()
        except Exception as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps: riders and settings
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an active rider named "{name}"'))
def _(riders, make_rider, name):
    riders[name] = make_rider(name)


@given(parsers.cfparse('an offline rider named "{name}"'))
def _(riders, make_rider, name):
    riders[name] = make_rider(name, status="offline")


@given(parsers.cfparse('a default rider named "{name}"'))
def _(riders, make_rider, name):
    riders[name] = make_rider(name, is_default=True)


@given("auto-assignment uses the default rider")
def _():
    current_domain.process(
        UpdateAutoAssignment(enabled=True, assign_to_default_rider=True, balance_workload=False),
        asynchronous=False,
    )


@given(parsers.cfparse("auto-assignment balances workload with at most {cap:d} deliveries per rider"))
def _(cap):
    current_domain.process(
        UpdateAutoAssignment(enabled=True, balance_workload=True, max_deliveries_per_rider=cap),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Given steps: deliveries
# ---------------------------------------------------------------------------
@given("a pending delivery", target_fixture="delivery")
def _(make_delivery):
    return make_delivery()


@given(parsers.cfparse('a delivery that has reached "{status}"'), target_fixture="delivery")
def _(make_delivery, advance, riders, status):
    delivery = make_delivery()
    if status == "pending":
        return delivery
    rider = next(iter(riders.values()), None)
    return advance(delivery.id, status, rider_id=str(rider.id) if rider else None)


# ---------------------------------------------------------------------------
# When steps: shared by lifecycle and assignment features
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the delivery is assigned to rider "{name}"'), target_fixture="delivery")
def _(delivery, riders, attempt, name):
    attempt(lambda: transitions.assign(str(delivery.id), actor="ops@dispatch", rider_id=str(riders[name].id)))
    return load_delivery(delivery.id)


@when("the delivery is auto-assigned", target_fixture="delivery")
def _(delivery, attempt):
    attempt(lambda: transitions.assign(str(delivery.id), actor="ops@dispatch"))
    return load_delivery(delivery.id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivery status is "{status}"'))
def _(delivery, status):
    assert load_delivery(delivery.id).status == status


@then(parsers.cfparse('the delivery rider is "{name}"'))
def _(delivery, name):
    assert load_delivery(delivery.id).assigned_rider_name == name


@then("the delivery has no rider")
def _(delivery):
    assert load_delivery(delivery.id).assigned_rider_id is None


@then(parsers.cfparse('the change is rejected with "{kind}"'))
def _(error, kind):
    assert error["exc"] is not None, "Expected the change to be rejected"
    assert error_kind_of(error["exc"]).value == kind


@then(parsers.cfparse('a "{event_name}" notification is sent'))
def _(notifier, event_name):
    relay.drain()
    assert event_name in notifier.events_sent()
