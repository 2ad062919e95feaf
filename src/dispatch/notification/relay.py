"""Fire-and-forget notification relay.

``publish`` is called after a change is committed. It snapshots the event and
the delivery into plain dicts and hands one job per event to a small thread
pool, then returns. A failing or slow notifier is logged and never reaches the
caller.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime

import structlog
from protean.utils.reflection import declared_fields

from dispatch.config import notify_workers
from dispatch.notification import get_notifier

logger = structlog.get_logger(__name__)

_SNAPSHOT_FIELDS = (
    "customer_name",
    "contact",
    "user_email",
    "delivery_type",
    "status",
    "pickup_point",
    "dropoff_point",
    "assigned_rider_name",
    "price",
    "payment_status",
)

_executor: ThreadPoolExecutor | None = None
_pending: set[Future] = set()
_lock = threading.Lock()


def _plain(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def event_payload(event) -> dict:
    return {
        name: _plain(getattr(event, name))
        for name in declared_fields(event)
        if not name.startswith("_")
    }


def delivery_snapshot(delivery) -> dict:
    snapshot = {"id": str(delivery.id)}
    snapshot.update({name: _plain(getattr(delivery, name, None)) for name in _SNAPSHOT_FIELDS})
    return snapshot


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=notify_workers(), thread_name_prefix="dispatch-notify")
        return _executor


def _send(event_name: str, payload: dict) -> None:
    delivery_id = payload.get("delivery", {}).get("id")
    try:
        result = get_notifier().notify(event_name, payload)
    except Exception:
        logger.exception("Notification failed", event=event_name, delivery_id=delivery_id)
        return
    if result.get("status") != "sent":
        logger.error(
            "Notification rejected",
            event=event_name,
            delivery_id=delivery_id,
            error=result.get("error"),
        )
    else:
        logger.debug("Notification sent", event=event_name, delivery_id=delivery_id, message_id=result.get("message_id"))


def _forget(future: Future) -> None:
    with _lock:
        _pending.discard(future)


def publish(events, delivery) -> int:
    """Queue one notification per event. Returns how many were queued."""
    snapshot = delivery_snapshot(delivery)
    executor = _get_executor()
    queued = 0
    for event in events:
        event_name = event.__class__.__name__
        payload = {"event": event_payload(event), "delivery": snapshot}
        future = executor.submit(_send, event_name, payload)
        with _lock:
            _pending.add(future)
        future.add_done_callback(_forget)
        queued += 1
    return queued


def drain(timeout: float | None = 5.0) -> bool:
    """Wait for queued notifications. Returns False if some were still running at timeout."""
    with _lock:
        pending = list(_pending)
    if not pending:
        return True
    _, not_done = wait(pending, timeout=timeout)
    return not not_done


def shutdown() -> None:
    global _executor
    with _lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=True)
