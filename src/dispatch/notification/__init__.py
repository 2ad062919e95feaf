"""Notifier adapter abstraction: pluggable delivery notification channel."""

from dispatch.config import notifier_adapter

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton).

    Uses FakeNotifier by default. Select another adapter with the
    DISPATCH_NOTIFIER environment variable.
    """
    global _notifier_instance
    if _notifier_instance is None:
        adapter = notifier_adapter()
        if adapter == "fake":
            from dispatch.notification.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def set_notifier(notifier) -> None:
    """Install a specific adapter instance."""
    global _notifier_instance
    _notifier_instance = notifier


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
