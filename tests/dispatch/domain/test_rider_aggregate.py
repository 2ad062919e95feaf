"""Tests for Rider registration, status changes and the default-rider flag."""

import pytest
from dispatch.rider.events import (
    DefaultRiderCleared,
    DefaultRiderDesignated,
    RiderRegistered,
    RiderStatusChanged,
)
from dispatch.rider.rider import Rider, RiderStatus, generate_rider_code
from protean.exceptions import ValidationError


def _register(**overrides):
    fields = {"name": "Kofi Boateng", "phone": "0241234567"}
    fields.update(overrides)
    return Rider.register(**fields)


class TestRegistration:
    def test_registers_active(self):
        rider = _register()
        assert rider.status == RiderStatus.ACTIVE.value
        assert rider.is_available
        assert rider.is_default_delivery_rider is False

    def test_whatsapp_defaults_to_phone(self):
        assert _register().whatsapp == "0241234567"

    def test_rider_code_is_uppercased(self):
        assert _register(rider_code=" rkofi1 ").rider_code == "RKOFI1"

    def test_rider_code_generated_when_missing(self):
        code = _register().rider_code
        assert code.startswith("R")
        assert len(code) == 7

    def test_generated_codes_differ(self):
        assert generate_rider_code() != generate_rider_code()

    def test_raises_registered_event(self):
        rider = _register(rider_code="RK01")
        event = rider._events[0]
        assert isinstance(event, RiderRegistered)
        assert event.rider_code == "RK01"

    def test_name_required(self):
        with pytest.raises(ValidationError):
            _register(name=None)


class TestStatusChanges:
    @pytest.mark.parametrize("status", ["busy", "offline", "suspended"])
    def test_non_active_rider_is_unavailable(self, status):
        rider = _register()
        rider.change_status(status)
        assert rider.status == status
        assert not rider.is_available

    def test_raises_status_changed_event(self):
        rider = _register()
        rider._events.clear()
        rider.change_status("offline")
        event = rider._events[0]
        assert isinstance(event, RiderStatusChanged)
        assert (event.previous_status, event.new_status) == ("active", "offline")

    def test_same_status_is_no_op(self):
        rider = _register()
        rider._events.clear()
        rider.change_status("active")
        assert rider._events == []

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            _register().change_status("on-leave")


class TestDefaultFlag:
    def test_designate_and_clear(self):
        rider = _register()
        rider._events.clear()
        rider.designate_default()
        assert rider.is_default_delivery_rider is True
        rider.clear_default()
        assert rider.is_default_delivery_rider is False
        assert [type(e) for e in rider._events] == [DefaultRiderDesignated, DefaultRiderCleared]

    def test_designate_twice_raises_one_event(self):
        rider = _register()
        rider._events.clear()
        rider.designate_default()
        rider.designate_default()
        assert len(rider._events) == 1
