# ===== detailing/tasks/appointment_tasks.py =====
import logging

from detailing.config.celery_config import celery_app
from detailing.config.database import SessionLocal
from detailing.services.appointment.appointment_service import AppointmentService
from detailing.services.notification.notification_service import NotificationService
from detailing.services.notification.notifier import SynchronousNotifier

logger = logging.getLogger(__name__)


@celery_app.task
def send_appointment_reminders():
    """Periodic: remind clients whose appointment starts within the look-ahead window"""
    db = SessionLocal()
    try:
        notifier = SynchronousNotifier(NotificationService(db))
        result = AppointmentService(db, notifier=notifier).send_reminders()

        if not result.ok:
            logger.error(f"Reminder batch failed: {result.error.message}")
            return {"status": "failed", "reason": result.error.kind.value}

        return {"status": "success", "sent": result.value}
    finally:
        db.close()
