"""BDD tests for rider assignment."""

from pytest_bdd import given, parsers, scenarios

scenarios("features/rider_assignment.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{name}" already has {count:d} open deliveries'))
def _(riders, make_delivery, advance, name, count):
    for _ in range(count):
        advance(make_delivery().id, "assigned", rider_id=str(riders[name].id))
