# detailing/api/v1/services.py
"""
Service catalog and slot availability endpoints
"""
from datetime import date, time

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from detailing.api.dependencies import get_appointment_service
from detailing.api.errors import unwrap
from detailing.config.database import get_db
from detailing.schemas.service import (
    ServiceAvailabilityResponse,
    ServiceCategoryResponse,
    ServiceListResponse,
    ServiceResponse,
    SlotAvailabilityResponse,
    TimeSlotsResponse,
)
from detailing.services.appointment.appointment_service import AppointmentService
from detailing.services.catalog.service_catalog_service import ServiceCatalogService

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/categories", response_model=list[ServiceCategoryResponse])
def get_categories(db: Session = Depends(get_db)):
    categories = unwrap(ServiceCatalogService.get_categories(db))
    return [category.to_dict() for category in categories]


@router.get("/categories/{category_id}", response_model=ServiceCategoryResponse)
def get_category(category_id: int = Path(...), db: Session = Depends(get_db)):
    return unwrap(ServiceCatalogService.get_category(db, category_id)).to_dict()


@router.get("/by-category/{category_id}", response_model=ServiceListResponse)
def get_services_by_category(category_id: int = Path(...), db: Session = Depends(get_db)):
    services = unwrap(ServiceCatalogService.get_services_by_category(db, category_id))
    return {"total": len(services), "services": [s.to_dict() for s in services]}


@router.get("/by-category/{category_id}/top", response_model=ServiceListResponse)
def get_top_services_by_category(
        category_id: int = Path(...),
        count: int = Query(3, ge=1, le=20),
        db: Session = Depends(get_db)
):
    services = unwrap(ServiceCatalogService.get_top_services_by_category(db, category_id, count))
    return {"total": len(services), "services": [s.to_dict() for s in services]}


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int = Path(...), db: Session = Depends(get_db)):
    return unwrap(ServiceCatalogService.get_service(db, service_id)).to_dict()


@router.get("/{service_id}/slots", response_model=TimeSlotsResponse)
def get_available_time_slots(
        service_id: int = Path(...),
        date: date = Query(..., description="Day to list open start times for"),
        service: AppointmentService = Depends(get_appointment_service)
):
    slots = unwrap(service.get_available_time_slots(service_id, date))
    return {
        "service_id": service_id,
        "date": date.isoformat(),
        "slots": [slot.strftime("%H:%M") for slot in slots]
    }


@router.get("/{service_id}/availability", response_model=SlotAvailabilityResponse)
def is_time_slot_available(
        service_id: int = Path(...),
        date: date = Query(...),
        time: time = Query(...),
        db: Session = Depends(get_db),
        service: AppointmentService = Depends(get_appointment_service)
):
    catalog_service = unwrap(ServiceCatalogService.get_service(db, service_id))
    is_available = unwrap(service.is_time_slot_available(
        service_id, date, time, catalog_service.duration_minutes
    ))
    return {
        "service_id": service_id,
        "date": date.isoformat(),
        "time": time.strftime("%H:%M"),
        "duration_minutes": catalog_service.duration_minutes,
        "is_available": is_available
    }


@router.get("/{service_id}/calculate", response_model=ServiceAvailabilityResponse)
def calculate_service_availability(
        service_id: int = Path(...),
        date: date = Query(...),
        db: Session = Depends(get_db)
):
    return unwrap(ServiceCatalogService.calculate_service_availability(db, service_id, date))
