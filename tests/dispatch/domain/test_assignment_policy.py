"""Tests for choosing the assignment strategy from settings and request."""

import pytest
from dispatch.assignment.policy import StrategyName, choose_strategy, parse_strategy, strategy_for
from dispatch.assignment.resolver import DefaultRiderAssignment, LeastBusyAssignment, ManualAssignment
from dispatch.assignment.workload import WorkloadTally
from dispatch.errors import ConfigurationError
from dispatch.settings.platform import AutoAssignment
from protean.exceptions import ValidationError


def _rules(**overrides):
    values = {
        "enabled": True,
        "assign_to_default_rider": False,
        "balance_workload": False,
        "consider_location": False,
        "max_deliveries_per_rider": 3,
    }
    values.update(overrides)
    return AutoAssignment(**values)


class TestParseStrategy:
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_means_no_preference(self, value):
        assert parse_strategy(value) is None

    def test_known_names(self):
        assert parse_strategy("least-busy") == StrategyName.LEAST_BUSY
        assert parse_strategy(StrategyName.DEFAULT) == StrategyName.DEFAULT

    def test_unknown_name_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_strategy("round-robin")
        assert "strategy" in exc.value.messages


class TestChooseStrategy:
    def test_rider_id_means_manual(self):
        assert choose_strategy(_rules(enabled=False), rider_id="r1") == StrategyName.MANUAL

    def test_explicit_strategy_wins(self):
        rules = _rules(assign_to_default_rider=True)
        assert choose_strategy(rules, strategy="least-busy") == StrategyName.LEAST_BUSY

    def test_manual_without_rider_rejected(self):
        with pytest.raises(ValidationError):
            choose_strategy(_rules(), strategy="manual")

    def test_disabled_auto_assignment_needs_a_rider(self):
        with pytest.raises(ValidationError) as exc:
            choose_strategy(_rules(enabled=False, assign_to_default_rider=True))
        assert "rider_id" in exc.value.messages

    def test_missing_rules_need_a_rider(self):
        with pytest.raises(ValidationError):
            choose_strategy(None)

    def test_balance_workload_means_least_busy(self):
        rules = _rules(balance_workload=True, assign_to_default_rider=True)
        assert choose_strategy(rules) == StrategyName.LEAST_BUSY

    def test_default_rider_rule(self):
        assert choose_strategy(_rules(assign_to_default_rider=True)) == StrategyName.DEFAULT

    def test_location_only_is_not_available(self):
        with pytest.raises(ConfigurationError):
            choose_strategy(_rules(consider_location=True))

    def test_enabled_without_any_rule(self):
        with pytest.raises(ConfigurationError):
            choose_strategy(_rules())


class TestStrategyFor:
    def test_builds_manual(self):
        strategy = strategy_for(_rules(), rider_id="r1")
        assert isinstance(strategy, ManualAssignment)
        assert strategy.rider_id == "r1"

    def test_builds_default(self):
        assert isinstance(strategy_for(_rules(assign_to_default_rider=True)), DefaultRiderAssignment)

    def test_least_busy_uses_given_tally_and_cap(self):
        tally = WorkloadTally()
        strategy = strategy_for(_rules(balance_workload=True, max_deliveries_per_rider=4), tally=tally)
        assert isinstance(strategy, LeastBusyAssignment)
        assert strategy.tally is tally
        assert strategy.max_per_rider == 4

    def test_least_busy_requested_without_rules_needs_a_cap(self):
        with pytest.raises(ConfigurationError):
            strategy_for(None, strategy="least-busy", tally=WorkloadTally())
