"""Application tests for rider registration, status changes and the default rider."""

import pytest
from dispatch.errors import NotFoundError
from dispatch.rider.availability import ChangeRiderStatus, DesignateDefaultRider
from dispatch.rider.directory import find_rider_by_code, list_riders, load_rider
from dispatch.rider.registration import RegisterRider
from protean import current_domain
from protean.exceptions import ValidationError


def _register(**overrides):
    fields = {"name": "Kofi Boateng", "phone": "0241234567"}
    fields.update(overrides)
    return current_domain.process(RegisterRider(**fields), asynchronous=False)


class TestRegisterRider:
    def test_returns_id_of_stored_rider(self):
        rider_id = _register(rider_code="rk01")
        rider = load_rider(rider_id)
        assert rider.name == "Kofi Boateng"
        assert rider.rider_code == "RK01"
        assert rider.status == "active"

    def test_duplicate_code_rejected(self):
        _register(rider_code="RK01")
        with pytest.raises(ValidationError) as exc:
            _register(name="Esi", rider_code="rk01")
        assert "rider_code" in exc.value.messages

    def test_phone_required(self):
        with pytest.raises(ValidationError):
            _register(phone=None)


class TestDirectory:
    def test_unknown_rider(self):
        with pytest.raises(NotFoundError):
            load_rider("no-such-rider")

    def test_list_oldest_first(self, make_rider):
        make_rider("Kofi")
        make_rider("Esi")
        assert [r.name for r in list_riders()] == ["Kofi", "Esi"]

    def test_list_filtered_by_status(self, make_rider):
        make_rider("Kofi", status="offline")
        make_rider("Esi")
        assert [r.name for r in list_riders(status="active")] == ["Esi"]

    def test_find_by_code_is_case_insensitive(self, make_rider):
        make_rider("Kofi", rider_code="RKOFI")
        assert find_rider_by_code(" rkofi ").name == "Kofi"

    def test_find_by_unknown_code(self):
        with pytest.raises(NotFoundError):
            find_rider_by_code("NOPE")


class TestRiderStatus:
    def test_change_status(self, make_rider):
        rider = make_rider()
        current_domain.process(ChangeRiderStatus(rider_id=str(rider.id), status="suspended"), asynchronous=False)
        assert load_rider(rider.id).status == "suspended"

    def test_unknown_status(self, make_rider):
        rider = make_rider()
        with pytest.raises(ValidationError):
            current_domain.process(ChangeRiderStatus(rider_id=str(rider.id), status="retired"), asynchronous=False)

    def test_unknown_rider(self):
        with pytest.raises(NotFoundError):
            current_domain.process(ChangeRiderStatus(rider_id="no-such-rider", status="offline"), asynchronous=False)


class TestDefaultRider:
    def test_designating_moves_the_flag(self, make_rider):
        kofi = make_rider("Kofi", is_default=True)
        esi = make_rider("Esi")
        current_domain.process(DesignateDefaultRider(rider_id=str(esi.id)), asynchronous=False)
        assert load_rider(esi.id).is_default_delivery_rider is True
        assert load_rider(kofi.id).is_default_delivery_rider is False

    def test_only_one_rider_flagged(self, make_rider):
        riders = [make_rider(name, is_default=True) for name in ("Kofi", "Esi", "Yaw")]
        current_domain.process(DesignateDefaultRider(rider_id=str(riders[1].id)), asynchronous=False)
        assert [r.name for r in list_riders(is_default_delivery_rider=True)] == ["Esi"]
