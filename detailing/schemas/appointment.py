"""
Pydantic schemas for appointment requests and responses
"""
from pydantic import BaseModel, Field
from typing import Optional, List
import datetime as dt


# ============================================================================
# Request Schemas
# ============================================================================

class CreateAppointmentRequest(BaseModel):
    """Book a service at a date and start time"""
    service_id: int = Field(..., gt=0)
    date: dt.date
    time: dt.time


class RescheduleAppointmentRequest(BaseModel):
    new_date: dt.date
    new_time: dt.time


class CancelAppointmentRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# ============================================================================
# Response Schemas
# ============================================================================

class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    service_id: int
    service_name: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    cancellation_reason: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None


class AppointmentListResponse(BaseModel):
    total: int
    appointments: List[AppointmentResponse]
