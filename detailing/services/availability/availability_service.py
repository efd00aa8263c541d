# ===== detailing/services/availability/availability_service.py =====
from datetime import date, time
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from detailing.config.settings import get_settings
from detailing.models.appointment import Appointment, AppointmentStatus
from detailing.models.service import Service
from detailing.services.scheduling import time_slots
import logging

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Answers "is this slot free?" and "which slots are free today?" for a service"""

    @staticmethod
    def busy_intervals(
            db: Session,
            service_id: int,
            appointment_date: date,
            exclude_appointment_id: Optional[int] = None
    ) -> List[Tuple[time, time]]:
        """[start, end) of every non-cancelled booking of the service on that date"""
        query = db.query(Appointment.start_time, Appointment.end_time).filter(
            Appointment.service_id == service_id,
            Appointment.appointment_date == appointment_date,
            Appointment.status != AppointmentStatus.CANCELLED
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return [(row.start_time, row.end_time) for row in query.all()]

    @staticmethod
    def is_time_slot_available(
            db: Session,
            service_id: int,
            appointment_date: date,
            start_time: time,
            duration_minutes: int,
            exclude_appointment_id: Optional[int] = None
    ) -> bool:
        """
        True iff no non-cancelled booking of the service overlaps the candidate slot.

        The service itself is not looked up: an unknown service has no bookings and
        is therefore reported as available. Callers validate existence first.
        """
        candidate_end = time_slots.end_time(start_time, duration_minutes)
        busy = AvailabilityService.busy_intervals(
            db, service_id, appointment_date, exclude_appointment_id
        )

        is_available = not any(
            time_slots.overlaps(start_time, candidate_end, busy_start, busy_end)
            for busy_start, busy_end in busy
        )

        logger.debug(
            f"Checked availability for service {service_id} at {appointment_date} "
            f"{start_time.strftime('%H:%M')}: {is_available}"
        )
        return is_available

    @staticmethod
    def get_available_time_slots(
            db: Session,
            service_id: int,
            appointment_date: date,
            day_start: Optional[time] = None,
            day_end: Optional[time] = None,
            buffer_minutes: Optional[int] = None
    ) -> List[time]:
        """
        Walk the business day and collect free start times for the service.

        A free candidate is emitted and the walk jumps by duration + buffer; a
        busy candidate is retried one buffer later. Returns an empty list for an
        unknown service.
        """
        settings = get_settings()
        day_start = day_start or settings.BUSINESS_DAY_START
        day_end = day_end or settings.BUSINESS_DAY_END
        buffer_minutes = settings.SLOT_BUFFER_MINUTES if buffer_minutes is None else buffer_minutes

        service = db.get(Service, service_id)
        if not service:
            logger.warning(f"Service {service_id} not found")
            return []

        duration = service.duration_minutes
        # Offsets in minutes from the opening of the business day
        busy = [
            (time_slots.minutes_between(day_start, start), time_slots.minutes_between(day_start, end))
            for start, end in AvailabilityService.busy_intervals(db, service_id, appointment_date)
        ]

        window_length = time_slots.minutes_between(day_start, day_end)
        step_on_conflict = max(buffer_minutes, 1)
        current = 0
        slots = []

        while current + duration <= window_length:
            slot_end = current + duration
            is_available = not any(
                time_slots.overlaps(current, slot_end, busy_start, busy_end)
                for busy_start, busy_end in busy
            )

            if is_available:
                slots.append(time_slots.add_minutes(day_start, current))
                current += duration + buffer_minutes
            else:
                current += step_on_conflict

        logger.debug(f"Found {len(slots)} open slots for service {service_id} on {appointment_date}")
        return slots
