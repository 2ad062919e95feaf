"""Application tests for delivery creation via the creation service."""

import pytest
from dispatch.delivery.creation import CreateDelivery
from dispatch.delivery.delivery import Delivery
from dispatch.errors import ConfigurationError
from dispatch.notification import relay
from dispatch.settings.management import UpdatePricing
from dispatch.settings.platform import PlatformSettings, Pricing, load_settings
from protean import current_domain
from protean.exceptions import ValidationError


class TestCreateDelivery:
    def test_stored_pending_with_default_instant_price(self, make_delivery):
        delivery = make_delivery()
        stored = current_domain.repository_for(Delivery).get(delivery.id)
        assert stored.status == "pending"
        assert stored.price == 10.0
        assert stored.rider_commission == 7.0
        assert stored.platform_revenue == 3.0
        assert stored.payment_status == "unpaid"

    def test_next_day_and_weekly_prices(self, make_delivery):
        assert make_delivery(delivery_type="next-day").price == 7.0
        assert make_delivery(delivery_type="weekly-station").price == 5.0

    def test_settings_created_on_first_use(self, make_delivery):
        make_delivery()
        assert str(current_domain.repository_for(PlatformSettings).get("platform-settings").id) == "platform-settings"

    def test_price_changes_apply_to_new_deliveries_only(self, make_delivery):
        before = make_delivery()
        current_domain.process(UpdatePricing(instant=12.5, updated_by="admin"), asynchronous=False)
        after = make_delivery()

        assert after.price == 12.5
        assert after.rider_commission == 8.75
        assert after.platform_revenue == 3.75
        assert current_domain.repository_for(Delivery).get(before.id).price == 10.0

    def test_unknown_delivery_type_rejected(self, make_delivery):
        with pytest.raises(ValidationError):
            make_delivery(delivery_type="overnight")

    def test_missing_price_is_a_configuration_error(self, make_delivery):
        settings = load_settings()
        settings.pricing = Pricing(next_day=7.0)
        current_domain.repository_for(PlatformSettings).add(settings)

        with pytest.raises(ConfigurationError):
            make_delivery(delivery_type="instant")

    def test_email_stored_lowercase(self, make_delivery):
        assert make_delivery(user_email="Ama@Example.com").user_email == "ama@example.com"

    def test_command_returns_id(self):
        delivery_id = current_domain.process(
            CreateDelivery(
                customer_name="Kojo",
                contact="0209999999",
                item_description="Shoes",
                pickup_point="Madina",
                dropoff_point="Tema",
                delivery_type="next-day",
            ),
            asynchronous=False,
        )
        assert current_domain.repository_for(Delivery).get(delivery_id).customer_name == "Kojo"

    def test_creation_is_notified(self, make_delivery, notifier):
        delivery = make_delivery()
        relay.drain()
        assert notifier.events_sent() == ["DeliveryCreated"]
        assert notifier.sent[0]["payload"]["delivery"]["id"] == str(delivery.id)
