# ============================================================================
# detailing/services/appointment/appointment_query_service.py
# Read-side appointment lookups - always filtered by owner
# ============================================================================
from sqlalchemy.orm import Session, joinedload
from datetime import date
from typing import List, Optional
import logging

from detailing.core.exceptions import Result
from detailing.models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


class AppointmentQueryService:
    """Service layer for reading a client's appointments."""

    @staticmethod
    def get_appointment(
            db: Session,
            appointment_id: int,
            user_id: int
    ) -> Result[Appointment]:
        """Get a single appointment owned by the user."""
        try:
            appointment = db.query(Appointment).options(
                joinedload(Appointment.service),
                joinedload(Appointment.user)
            ).filter(
                Appointment.id == appointment_id,
                Appointment.user_id == user_id
            ).first()
        except Exception as e:
            logger.error(f"Error getting appointment {appointment_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        if not appointment:
            logger.warning(f"Appointment {appointment_id} not found")
            return Result.not_found(f"Appointment {appointment_id} not found")

        return Result.success(appointment)

    @staticmethod
    def get_upcoming_appointments(
            db: Session,
            user_id: int,
            today: Optional[date] = None
    ) -> Result[List[Appointment]]:
        """Confirmed appointments from today on, earliest first."""
        today = today or date.today()

        try:
            appointments = db.query(Appointment).options(
                joinedload(Appointment.service),
                joinedload(Appointment.user)
            ).filter(
                Appointment.user_id == user_id,
                Appointment.appointment_date >= today,
                Appointment.status == AppointmentStatus.CONFIRMED
            ).order_by(
                Appointment.appointment_date.asc(),
                Appointment.start_time.asc()
            ).all()
        except Exception as e:
            logger.error(f"Error getting upcoming appointments: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        return Result.success(appointments)
