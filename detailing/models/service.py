# detailing/models/service.py
"""
Service catalog models.
Services are shared and read-only from the booking core's point of view;
duration is the source of truth for an appointment's end time.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from detailing.models.base import Base


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    services = relationship("Service", back_populates="category")

    def __repr__(self):
        return f"<ServiceCategory(id={self.id}, name={self.name})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    category_id = Column(
        Integer,
        ForeignKey("service_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    category = relationship("ServiceCategory", back_populates="services")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, duration={self.duration_minutes})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "duration_minutes": self.duration_minutes,
            "category_id": self.category_id,
            "formatted_duration": self.formatted_duration,
        }

    @property
    def formatted_duration(self) -> str:
        """Return human-readable duration string"""
        hours = self.duration_minutes // 60
        minutes = self.duration_minutes % 60

        if hours > 0 and minutes > 0:
            return f"{hours}h {minutes}m"
        elif hours > 0:
            return f"{hours}h"
        else:
            return f"{minutes}m"
