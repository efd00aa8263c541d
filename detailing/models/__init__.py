# detailing/models/__init__.py
from .base import Base
from .user import User
from .service import Service, ServiceCategory
from .appointment import Appointment, AppointmentStatus
from .review import Review, ReviewDraft

__all__ = [
    "Base",
    "User",
    "Service",
    "ServiceCategory",
    "Appointment",
    "AppointmentStatus",
    "Review",
    "ReviewDraft",
]
