"""Runtime knobs read from the process environment.

Read on every call rather than at import so tests can flip them with
``monkeypatch.setenv``.
"""

import os

DEFAULT_CAS_MAX_ATTEMPTS = 3
DEFAULT_BULK_MAX_WORKERS = 4
DEFAULT_NOTIFY_WORKERS = 2


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def cas_max_attempts() -> int:
    """How many times a status change is re-read and retried after losing a race."""
    return _positive_int("DISPATCH_CAS_MAX_ATTEMPTS", DEFAULT_CAS_MAX_ATTEMPTS)


def bulk_max_workers() -> int:
    """Upper bound on deliveries processed concurrently by one bulk request."""
    return _positive_int("DISPATCH_BULK_MAX_WORKERS", DEFAULT_BULK_MAX_WORKERS)


def notify_workers() -> int:
    return _positive_int("DISPATCH_NOTIFY_WORKERS", DEFAULT_NOTIFY_WORKERS)


def notifier_adapter() -> str:
    return os.environ.get("DISPATCH_NOTIFIER", "fake")
