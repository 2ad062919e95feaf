"""Which assignment strategy runs for a request.

    explicit strategy name          → that strategy
    explicit rider id               → manual
    auto-assignment disabled        → a rider id is required
    balance_workload                → least-busy
    assign_to_default_rider         → default rider
    consider_location only          → not available (ConfigurationError)
"""

from enum import Enum

from protean.exceptions import ValidationError

from dispatch.assignment.resolver import (
    AssignmentStrategy,
    DefaultRiderAssignment,
    LeastBusyAssignment,
    ManualAssignment,
)
from dispatch.assignment.workload import WorkloadTally
from dispatch.errors import ConfigurationError


class StrategyName(Enum):
    MANUAL = "manual"
    DEFAULT = "default"
    LEAST_BUSY = "least-busy"


def parse_strategy(value) -> StrategyName | None:
    if value is None or value == "":
        return None
    try:
        return StrategyName(value)
    except ValueError:
        names = ", ".join(s.value for s in StrategyName)
        raise ValidationError({"strategy": [f"Unknown assignment strategy {value!r}; expected one of {names}"]}) from None


def choose_strategy(auto_assignment, rider_id: str | None = None, strategy=None) -> StrategyName:
    requested = parse_strategy(strategy)
    if requested is not None:
        if requested == StrategyName.MANUAL and not rider_id:
            raise ValidationError({"rider_id": ["Manual assignment requires a rider"]})
        return requested
    if rider_id:
        return StrategyName.MANUAL

    if auto_assignment is None or not auto_assignment.enabled:
        raise ValidationError({"rider_id": ["A rider is required while auto-assignment is disabled"]})
    if auto_assignment.balance_workload:
        return StrategyName.LEAST_BUSY
    if auto_assignment.assign_to_default_rider:
        return StrategyName.DEFAULT
    if auto_assignment.consider_location:
        raise ConfigurationError("Location-based assignment is not available")
    raise ConfigurationError("Auto-assignment is enabled but no assignment rule is switched on")


def strategy_for(
    auto_assignment,
    rider_id: str | None = None,
    strategy=None,
    tally: WorkloadTally | None = None,
) -> AssignmentStrategy:
    """Build the strategy for one request (or one whole batch, sharing ``tally``)."""
    name = choose_strategy(auto_assignment, rider_id=rider_id, strategy=strategy)

    if name == StrategyName.MANUAL:
        return ManualAssignment(rider_id, tally=tally)
    if name == StrategyName.DEFAULT:
        return DefaultRiderAssignment(tally=tally)

    cap = auto_assignment.max_deliveries_per_rider if auto_assignment is not None else None
    if not cap:
        raise ConfigurationError("Least-busy assignment needs max_deliveries_per_rider")
    return LeastBusyAssignment(tally if tally is not None else WorkloadTally.from_store(), cap)
