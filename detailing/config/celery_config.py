"""Celery application factory and periodic schedule"""
from celery import Celery

from detailing.config.settings import get_settings

settings = get_settings()

TASK_MODULES = [
    "detailing.tasks.notification_tasks",
    "detailing.tasks.appointment_tasks",
    "detailing.tasks.review_tasks",
]


def create_celery_app() -> Celery:
    """Create and configure the Celery app"""
    app = Celery(
        "detailing",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=TASK_MODULES,
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        beat_schedule={
            "send-appointment-reminders": {
                "task": "detailing.tasks.appointment_tasks.send_appointment_reminders",
                "schedule": settings.REMINDER_INTERVAL_MINUTES * 60.0,
            },
            "purge-expired-review-drafts": {
                "task": "detailing.tasks.review_tasks.purge_expired_review_drafts",
                "schedule": 3600.0,
            },
        },
    )

    return app


celery_app = create_celery_app()
