# ============================================================================
# FILE: detailing/api/v1/appointments.py
# Client appointment endpoints - thin HTTP layer over AppointmentService
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from detailing.api.dependencies import get_current_user, get_appointment_service
from detailing.api.errors import unwrap
from detailing.config.database import get_db
from detailing.models.user import User
from detailing.schemas.appointment import (
    AppointmentListResponse,
    AppointmentResponse,
    CancelAppointmentRequest,
    CreateAppointmentRequest,
    RescheduleAppointmentRequest,
)
from detailing.services.appointment.appointment_query_service import AppointmentQueryService
from detailing.services.appointment.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=201)
def create_appointment(
        request: CreateAppointmentRequest,
        current_user: User = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service)
):
    """
    Book a service slot.
    409 when the slot overlaps an existing booking.
    """
    appointment = unwrap(service.create_appointment(
        user_id=current_user.id,
        service_id=request.service_id,
        appointment_date=request.date,
        start_time=request.time
    ))
    return appointment.to_dict()


@router.get("/upcoming", response_model=AppointmentListResponse)
def get_upcoming_appointments(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """Confirmed appointments from today on."""
    appointments = unwrap(AppointmentQueryService.get_upcoming_appointments(db, current_user.id))
    return {
        "total": len(appointments),
        "appointments": [appointment.to_dict() for appointment in appointments]
    }


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
        appointment_id: int = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    appointment = unwrap(AppointmentQueryService.get_appointment(db, appointment_id, current_user.id))
    return appointment.to_dict()


@router.patch("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
        request: RescheduleAppointmentRequest,
        appointment_id: int = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service)
):
    """
    Move a confirmed appointment.
    Must be requested at least the notice period before the current start.
    """
    appointment = unwrap(service.reschedule_appointment(
        appointment_id=appointment_id,
        user_id=current_user.id,
        new_date=request.new_date,
        new_start_time=request.new_time
    ))
    return appointment.to_dict()


@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
        request: CancelAppointmentRequest,
        appointment_id: int = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        service: AppointmentService = Depends(get_appointment_service)
):
    appointment = unwrap(service.cancel_appointment(
        appointment_id=appointment_id,
        user_id=current_user.id,
        reason=request.reason
    ))
    return appointment.to_dict()
