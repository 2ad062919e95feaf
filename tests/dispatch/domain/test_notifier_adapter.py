"""Tests for the notifier adapter selection and the FakeNotifier."""

import pytest
from dispatch.notification import get_notifier, reset_notifier, set_notifier
from dispatch.notification.fake_adapter import FakeNotifier


class TestFakeNotifier:
    def test_records_sent_notifications(self):
        notifier = FakeNotifier()
        result = notifier.notify("DeliveryCreated", {"delivery": {"id": "d-1"}})
        assert result["status"] == "sent"
        assert result["message_id"].startswith("msg-")
        assert notifier.events_sent() == ["DeliveryCreated"]

    def test_configured_failure(self):
        notifier = FakeNotifier()
        notifier.configure(should_succeed=False, failure_reason="Quota exceeded")
        result = notifier.notify("DeliveryAssigned", {})
        assert result == {"status": "failed", "message_id": None, "error": "Quota exceeded"}
        assert notifier.sent == []

    def test_configured_exception(self):
        notifier = FakeNotifier()
        notifier.configure(should_raise=True)
        with pytest.raises(ConnectionError):
            notifier.notify("DeliveryAssigned", {})


class TestNotifierSelection:
    def test_fake_is_the_default(self, monkeypatch):
        monkeypatch.delenv("DISPATCH_NOTIFIER", raising=False)
        reset_notifier()
        assert isinstance(get_notifier(), FakeNotifier)

    def test_singleton(self):
        assert get_notifier() is get_notifier()

    def test_set_notifier_installs_instance(self):
        custom = FakeNotifier()
        set_notifier(custom)
        assert get_notifier() is custom

    def test_unknown_adapter_rejected(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_NOTIFIER", "carrier-pigeon")
        reset_notifier()
        with pytest.raises(ValueError):
            get_notifier()
