# detailing/services/notification/notification_service.py
"""
Formats appointment notifications and delivers them to the client's chat.
Runs inside the Celery worker; errors propagate so the task can retry.
"""
from datetime import date, time
from typing import Any, Optional, Union
import logging

from sqlalchemy.orm import Session, joinedload

from detailing.models.appointment import Appointment
from detailing.services.notification.notifier import (
    CONFIRMATION, CANCELLATION, RESCHEDULE, REMINDER
)
from detailing.services.scheduling import time_slots
from detailing.services.telegram.telegram_client import TelegramClient

logger = logging.getLogger(__name__)


class NotificationService:
    """Builds message text per notification kind and sends it"""

    def __init__(self, db: Session, client: Optional[TelegramClient] = None):
        self.db = db
        self.client = client or TelegramClient()

    def send(self, kind: str, appointment_id: int, **extra: Any) -> Optional[int]:
        """
        Deliver one notification.

        Returns the Telegram message id, or None when there is nobody to notify
        (unknown appointment, client without a chat).
        """
        appointment = self._get_appointment_with_details(appointment_id)
        if not appointment:
            logger.warning(f"Appointment {appointment_id} not found, {kind} notification dropped")
            return None

        if not appointment.user or appointment.user.telegram_chat_id is None:
            logger.info(f"User of appointment {appointment_id} has no chat, skipping {kind}")
            return None

        text = self.format_message(kind, appointment, **extra)
        message_id = self.client.send_message(appointment.user.telegram_chat_id, text)

        logger.info(f"Sent {kind} notification for appointment {appointment_id}")
        return message_id

    @staticmethod
    def format_message(kind: str, appointment: Appointment, **extra: Any) -> str:
        service = appointment.service
        slot = (
            f"{appointment.start_time.strftime('%H:%M')}-"
            f"{appointment.end_time.strftime('%H:%M')}"
        )

        if kind == CONFIRMATION:
            return (
                "Appointment confirmed\n\n"
                f"Service: {service.name}\n"
                f"Date: {appointment.appointment_date.strftime('%d.%m.%Y')}\n"
                f"Time: {slot}"
            )

        if kind == CANCELLATION:
            return (
                "Appointment cancelled\n\n"
                f"Service: {service.name}\n"
                f"Date: {appointment.appointment_date.strftime('%d.%m.%Y')}\n"
                f"Time: {slot}\n"
                f"Reason: {extra.get('reason') or 'not specified'}"
            )

        if kind == RESCHEDULE:
            new_date = _as_date(extra.get("new_date") or appointment.appointment_date)
            new_time = _as_time(extra.get("new_time") or appointment.start_time)
            new_end = time_slots.end_time(new_time, service.duration_minutes)
            return (
                "Appointment rescheduled\n\n"
                f"Service: {service.name}\n"
                f"New date: {new_date.strftime('%d.%m.%Y')}\n"
                f"New time: {new_time.strftime('%H:%M')}-{new_end.strftime('%H:%M')}"
            )

        if kind == REMINDER:
            minutes_until = extra.get("minutes_until")
            return (
                f"Reminder: your appointment starts in {minutes_until} minutes!\n\n"
                f"Service: {service.name}\n"
                f"Time: {appointment.start_time.strftime('%H:%M')}"
            )

        raise ValueError(f"Invalid notification kind: {kind}")

    def _get_appointment_with_details(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).options(
            joinedload(Appointment.user),
            joinedload(Appointment.service)
        ).filter(Appointment.id == appointment_id).first()


def _as_date(value: Union[str, date]) -> date:
    return date.fromisoformat(value) if isinstance(value, str) else value


def _as_time(value: Union[str, time]) -> time:
    return time.fromisoformat(value) if isinstance(value, str) else value
