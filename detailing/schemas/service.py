"""
Pydantic schemas for the service catalog and slot availability
"""
from pydantic import BaseModel
from typing import Optional, List


class ServiceCategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    duration_minutes: int
    category_id: Optional[int] = None
    formatted_duration: str


class ServiceListResponse(BaseModel):
    total: int
    services: List[ServiceResponse]


class TimeSlotsResponse(BaseModel):
    service_id: int
    date: str
    slots: List[str]


class SlotAvailabilityResponse(BaseModel):
    service_id: int
    date: str
    time: str
    duration_minutes: int
    is_available: bool


class ServiceAvailabilityResponse(BaseModel):
    service_id: int
    is_available: bool
    price: float
    duration_minutes: int
    date: str
    available_slots: List[str]
