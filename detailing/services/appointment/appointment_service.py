# ============================================================================
# detailing/services/appointment/appointment_service.py
# ============================================================================
"""
Appointment lifecycle: create, reschedule, cancel, remind.

Every public method returns a Result. Expected outcomes (missing or foreign
appointment, busy slot, illegal transition, bad input) come back as tagged
errors; unexpected store errors roll the session back and come back as
DEPENDENCY_FAILURE. Notifications are sent only after commit and their
failures are logged, never reported to the caller.
"""
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from detailing.config.settings import get_settings
from detailing.core.exceptions import Result
from detailing.models.appointment import Appointment, AppointmentStatus
from detailing.models.service import Service
from detailing.services.availability.availability_service import AvailabilityService
from detailing.services.appointment.slot_locks import slot_lock
from detailing.services.notification.notifier import (
    CeleryNotifier, Notifier, CONFIRMATION, CANCELLATION, RESCHEDULE, REMINDER
)
from detailing.services.scheduling import time_slots

logger = logging.getLogger(__name__)


class AppointmentService:
    """Owns the confirmed -> cancelled state machine and in-place rescheduling"""

    def __init__(
            self,
            db: Session,
            notifier: Optional[Notifier] = None,
            now: Optional[Callable[[], datetime]] = None
    ):
        self.db = db
        self.notifier = notifier or CeleryNotifier()
        self.now = now or datetime.now
        self.settings = get_settings()

    # ------------------------------------------------------------------
    # Availability (Result-wrapped for callers)
    # ------------------------------------------------------------------

    def is_time_slot_available(
            self,
            service_id: int,
            appointment_date: date,
            start_time: time,
            duration_minutes: int
    ) -> Result[bool]:
        if duration_minutes <= 0:
            return Result.validation_failed("Duration must be positive")

        try:
            time_slots.end_time(start_time, duration_minutes)
        except ValueError as e:
            return Result.validation_failed(str(e))

        try:
            return Result.success(AvailabilityService.is_time_slot_available(
                self.db, service_id, appointment_date, start_time, duration_minutes
            ))
        except Exception as e:
            logger.error(f"Error checking time slot availability: {e}", exc_info=True)
            self.db.rollback()
            return Result.dependency_failure()

    def get_available_time_slots(self, service_id: int, appointment_date: date) -> Result[List[time]]:
        try:
            return Result.success(
                AvailabilityService.get_available_time_slots(self.db, service_id, appointment_date)
            )
        except Exception as e:
            logger.error(f"Error listing time slots for service {service_id}: {e}", exc_info=True)
            self.db.rollback()
            return Result.dependency_failure()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_appointment(
            self,
            user_id: int,
            service_id: int,
            appointment_date: date,
            start_time: time
    ) -> Result[Appointment]:
        """Book a slot; the whole check-then-insert runs under the slot lock"""
        try:
            with slot_lock([(service_id, appointment_date)]):
                result = self._create_locked(user_id, service_id, appointment_date, start_time)
                self._finish(result)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Slot {appointment_date} {start_time} of service {service_id} taken concurrently")
            return Result.conflict("Time slot not available")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating appointment: {e}", exc_info=True)
            return Result.dependency_failure()

        if result.ok:
            appointment = result.value
            logger.info(f"Appointment {appointment.id} created successfully")
            self._notify_safely(CONFIRMATION, appointment.id)
        return result

    def reschedule_appointment(
            self,
            appointment_id: int,
            user_id: int,
            new_date: date,
            new_start_time: time
    ) -> Result[Appointment]:
        """Move a confirmed appointment in place, at least the notice period ahead of its current start"""
        try:
            appointment = self._get_owned_appointment(appointment_id, user_id)
            if not appointment:
                return Result.not_found(f"Appointment {appointment_id} not found")

            with slot_lock([
                (appointment.service_id, appointment.appointment_date),
                (appointment.service_id, new_date)
            ]):
                result = self._reschedule_locked(appointment_id, user_id, new_date, new_start_time)
                self._finish(result)
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Slot {new_date} {new_start_time} taken while rescheduling {appointment_id}")
            return Result.conflict("Selected time slot is not available")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error rescheduling appointment {appointment_id}: {e}", exc_info=True)
            return Result.dependency_failure()

        if result.ok:
            logger.info(f"Appointment {appointment_id} rescheduled to {new_date} {new_start_time}")
            self._notify_safely(RESCHEDULE, appointment_id, new_date=new_date, new_time=new_start_time)
        return result

    def cancel_appointment(
            self,
            appointment_id: int,
            user_id: int,
            reason: Optional[str] = None
    ) -> Result[Appointment]:
        """Cancel a confirmed appointment; cancelling twice is an error"""
        try:
            appointment = self._get_owned_appointment(appointment_id, user_id, for_update=True)

            if not appointment:
                logger.warning(f"Appointment {appointment_id} not found for cancellation")
                result = Result.not_found(f"Appointment {appointment_id} not found")
            elif appointment.status != AppointmentStatus.CONFIRMED:
                logger.warning(f"Attempt to cancel non-confirmed appointment {appointment_id}")
                result = Result.invalid_state(
                    "Only confirmed appointments can be cancelled",
                    status=appointment.status.value
                )
            else:
                appointment.status = AppointmentStatus.CANCELLED
                appointment.cancellation_reason = reason
                appointment.modified_at = self.now()
                result = Result.success(appointment)

            self._finish(result)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error cancelling appointment {appointment_id}: {e}", exc_info=True)
            return Result.dependency_failure()

        if result.ok:
            logger.info(f"Appointment {appointment_id} cancelled")
            self._notify_safely(CANCELLATION, appointment_id, reason=reason)
        return result

    def send_reminders(self) -> Result[int]:
        """
        Remind every confirmed, not yet reminded appointment starting within the
        look-ahead window. One failed reminder does not stop the batch.
        """
        now = self.now()
        horizon = now + timedelta(hours=self.settings.REMINDER_LOOKAHEAD_HOURS)

        try:
            candidates = self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.CONFIRMED,
                Appointment.reminder_sent_at.is_(None),
                Appointment.appointment_date >= now.date(),
                Appointment.appointment_date <= horizon.date()
            ).order_by(Appointment.appointment_date, Appointment.start_time).all()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error loading appointments for reminders: {e}", exc_info=True)
            return Result.dependency_failure()

        sent = 0
        for appointment in candidates:
            if not now <= appointment.starts_at <= horizon:
                continue

            minutes_until = int((appointment.starts_at - now).total_seconds() // 60)
            try:
                self.notifier.notify(REMINDER, appointment.id, minutes_until=minutes_until)
            except Exception as e:
                logger.error(f"Error sending reminder for appointment {appointment.id}: {e}", exc_info=True)
                continue

            appointment.reminder_sent_at = now
            sent += 1

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error recording sent reminders: {e}", exc_info=True)
            return Result.dependency_failure()

        logger.info(f"Sent {sent} appointment reminders")
        return Result.success(sent)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_locked(
            self,
            user_id: int,
            service_id: int,
            appointment_date: date,
            start_time: time
    ) -> Result[Appointment]:
        service = self._lock_service(service_id)
        if not service:
            logger.warning(f"Service {service_id} not found")
            return Result.not_found(f"Service {service_id} not found")

        try:
            end_time = time_slots.end_time(start_time, service.duration_minutes)
        except ValueError as e:
            return Result.validation_failed(str(e))

        if not AvailabilityService.is_time_slot_available(
                self.db, service_id, appointment_date, start_time, service.duration_minutes
        ):
            logger.warning(f"Time slot not available for service {service_id}")
            return Result.conflict(
                "Time slot not available",
                date=appointment_date.isoformat(),
                start_time=start_time.strftime("%H:%M")
            )

        appointment = Appointment(
            user_id=user_id,
            service_id=service_id,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.CONFIRMED,
            created_at=self.now(),
        )
        self.db.add(appointment)
        self.db.flush()
        return Result.success(appointment)

    def _reschedule_locked(
            self,
            appointment_id: int,
            user_id: int,
            new_date: date,
            new_start_time: time
    ) -> Result[Appointment]:
        # Re-read under the lock so status and slot reflect the latest commit
        appointment = self._get_owned_appointment(appointment_id, user_id, for_update=True)
        if not appointment:
            return Result.not_found(f"Appointment {appointment_id} not found")

        if appointment.status != AppointmentStatus.CONFIRMED:
            return Result.invalid_state(
                "Only confirmed appointments can be rescheduled",
                status=appointment.status.value
            )

        notice = timedelta(hours=self.settings.RESCHEDULE_NOTICE_HOURS)
        if appointment.starts_at < self.now() + notice:
            return Result.invalid_state(
                f"Reschedule must be at least {self.settings.RESCHEDULE_NOTICE_HOURS} hours before appointment"
            )

        service = self._lock_service(appointment.service_id)
        if not service:
            return Result.not_found(f"Service {appointment.service_id} not found")

        try:
            new_end_time = time_slots.end_time(new_start_time, service.duration_minutes)
        except ValueError as e:
            return Result.validation_failed(str(e))

        if not AvailabilityService.is_time_slot_available(
                self.db,
                appointment.service_id,
                new_date,
                new_start_time,
                service.duration_minutes,
                exclude_appointment_id=appointment.id
        ):
            return Result.conflict(
                "Selected time slot is not available",
                date=new_date.isoformat(),
                start_time=new_start_time.strftime("%H:%M")
            )

        appointment.appointment_date = new_date
        appointment.start_time = new_start_time
        appointment.end_time = new_end_time
        appointment.modified_at = self.now()
        self.db.flush()
        return Result.success(appointment)

    def _get_owned_appointment(
            self,
            appointment_id: int,
            user_id: int,
            for_update: bool = False
    ) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.user_id == user_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def _lock_service(self, service_id: int) -> Optional[Service]:
        """Row-lock the service so concurrent writers for it serialize on PostgreSQL"""
        return self.db.query(Service).filter(
            Service.id == service_id
        ).with_for_update().populate_existing().first()

    def _finish(self, result: Result):
        if result.ok:
            self.db.commit()
        else:
            self.db.rollback()

    def _notify_safely(self, kind: str, appointment_id: int, **extra):
        try:
            self.notifier.notify(kind, appointment_id, **extra)
        except Exception as e:
            logger.error(
                f"Error sending {kind} notification for appointment {appointment_id}: {e}",
                exc_info=True
            )
