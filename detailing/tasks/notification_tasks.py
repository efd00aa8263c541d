# ===== detailing/tasks/notification_tasks.py =====
from typing import Any, Dict, Optional
import logging

from detailing.config.celery_config import celery_app
from detailing.config.database import SessionLocal
from detailing.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def deliver_appointment_notification(
        self,
        kind: str,
        appointment_id: int,
        extra: Optional[Dict[str, Any]] = None
):
    """
    Deliver a confirmation / cancellation / reschedule / reminder message

    Args:
        kind: Notification kind
        appointment_id: Appointment the message is about
        extra: Kind-specific values (reason, new_date, new_time, minutes_until)
    """
    db = SessionLocal()
    try:
        message_id = NotificationService(db).send(kind, appointment_id, **(extra or {}))

        if message_id is None:
            return {"status": "skipped", "appointment_id": appointment_id}

        return {"status": "sent", "appointment_id": appointment_id, "message_id": message_id}

    except ValueError as exc:
        logger.error(f"Dropping {kind} notification for appointment {appointment_id}: {exc}")
        return {"status": "failed", "reason": str(exc)}

    except Exception as exc:
        logger.error(f"Failed to send {kind} notification for appointment {appointment_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )

    finally:
        db.close()
