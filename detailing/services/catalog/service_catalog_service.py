# detailing/services/catalog/service_catalog_service.py
"""Read access to the service catalog"""
from datetime import date
from typing import Any, Dict, List
import logging

from sqlalchemy.orm import Session

from detailing.core.exceptions import Result
from detailing.models.service import Service, ServiceCategory
from detailing.services.availability.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


class ServiceCatalogService:
    """Categories, services and per-day availability summaries"""

    @staticmethod
    def get_categories(db: Session) -> Result[List[ServiceCategory]]:
        try:
            return Result.success(
                db.query(ServiceCategory).order_by(ServiceCategory.name.asc()).all()
            )
        except Exception as e:
            logger.error(f"Error loading service categories: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

    @staticmethod
    def get_category(db: Session, category_id: int) -> Result[ServiceCategory]:
        try:
            category = db.get(ServiceCategory, category_id)
        except Exception as e:
            logger.error(f"Error loading category {category_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        if not category:
            return Result.not_found(f"Service category {category_id} not found")
        return Result.success(category)

    @staticmethod
    def get_services_by_category(db: Session, category_id: int) -> Result[List[Service]]:
        return ServiceCatalogService.get_top_services_by_category(db, category_id, count=None)

    @staticmethod
    def get_top_services_by_category(
            db: Session,
            category_id: int,
            count: int = 3
    ) -> Result[List[Service]]:
        """First `count` services of a category (all of them when count is None)"""
        category_result = ServiceCatalogService.get_category(db, category_id)
        if not category_result.ok:
            return category_result

        try:
            query = db.query(Service).filter(
                Service.category_id == category_id
            ).order_by(Service.id.asc())
            if count is not None:
                query = query.limit(count)
            return Result.success(query.all())
        except Exception as e:
            logger.error(f"Error loading services of category {category_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Result[Service]:
        try:
            service = db.get(Service, service_id)
        except Exception as e:
            logger.error(f"Error loading service {service_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        if not service:
            return Result.not_found(f"Service {service_id} not found")
        return Result.success(service)

    @staticmethod
    def calculate_service_availability(
            db: Session,
            service_id: int,
            appointment_date: date
    ) -> Result[Dict[str, Any]]:
        """Price, duration and open slots of a service on one day"""
        service_result = ServiceCatalogService.get_service(db, service_id)
        if not service_result.ok:
            return service_result
        service = service_result.value

        try:
            slots = AvailabilityService.get_available_time_slots(db, service_id, appointment_date)
        except Exception as e:
            logger.error(f"Error calculating availability of service {service_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        return Result.success({
            "service_id": service.id,
            "is_available": bool(slots),
            "price": float(service.price),
            "duration_minutes": service.duration_minutes,
            "date": appointment_date.isoformat(),
            "available_slots": [slot.strftime("%H:%M") for slot in slots],
        })
