# detailing/services/notification/notifier.py
"""
Notification collaborators handed to the appointment lifecycle.

The lifecycle only calls ``notify(kind, appointment_id, **extra)`` after its
transaction has committed. Delivery happens elsewhere (a Celery worker), so a
notifier must be cheap and must not touch the booking session.
"""
import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)

CONFIRMATION = "confirmation"
CANCELLATION = "cancellation"
RESCHEDULE = "reschedule"
REMINDER = "reminder"

NOTIFICATION_KINDS = (CONFIRMATION, CANCELLATION, RESCHEDULE, REMINDER)


class Notifier(Protocol):
    def notify(self, kind: str, appointment_id: int, **extra: Any) -> None:
        ...


class CeleryNotifier:
    """Queues delivery on the worker; returns as soon as the task is enqueued"""

    def notify(self, kind: str, appointment_id: int, **extra: Any) -> None:
        from detailing.tasks.notification_tasks import deliver_appointment_notification

        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Invalid notification kind: {kind}")

        deliver_appointment_notification.delay(kind, appointment_id, _serialize(extra))
        logger.info(f"Queued {kind} notification for appointment {appointment_id}")


class SynchronousNotifier:
    """Delivers in the calling thread; used by the reminder batch inside the worker"""

    def __init__(self, notification_service):
        self.notification_service = notification_service

    def notify(self, kind: str, appointment_id: int, **extra: Any) -> None:
        self.notification_service.send(kind, appointment_id, **extra)


def _serialize(extra: Dict[str, Any]) -> Dict[str, Any]:
    """Make date/time extras JSON-safe for the task payload"""
    payload = {}
    for key, value in extra.items():
        if hasattr(value, "isoformat"):
            payload[key] = value.isoformat()
        else:
            payload[key] = value
    return payload
