# detailing/models/appointment.py
from datetime import datetime
import enum

from sqlalchemy import (
    Column, String, Integer, Text, Date, Time, DateTime, ForeignKey, Index,
    Enum as SQLAEnum, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from detailing.models.base import Base


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle states; cancelled and completed are terminal"""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # set by an external batch once the visit has happened


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live booking may start at a given slot of a service
        Index(
            "uq_appointments_live_slot",
            "service_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
        Index("ix_appointments_service_date", "service_id", "appointment_date"),
    )

    id = Column(Integer, primary_key=True)

    # References
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Slot
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Status tracking
    status = Column(
        SQLAEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda obj: [e.value for e in obj]
        ),
        nullable=False,
        default=AppointmentStatus.CONFIRMED,
        index=True
    )
    cancellation_reason = Column(Text, nullable=True)

    # Reminders
    reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    modified_at = Column(DateTime, nullable=True)

    user = relationship("User")
    service = relationship("Service")
    review = relationship("Review", back_populates="appointment", uselist=False)

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, service_id={self.service_id}, "
            f"date={self.appointment_date}, start={self.start_time}, status={self.status})>"
        )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.appointment_date, self.start_time)

    @property
    def duration_minutes(self) -> int:
        start = datetime.combine(self.appointment_date, self.start_time)
        end = datetime.combine(self.appointment_date, self.end_time)
        return int((end - start).total_seconds() // 60)

    def to_dict(self):
        """Convert to dictionary for API responses"""
        service = self.service
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.username if self.user else None,
            "service_id": self.service_id,
            "service_name": service.name if service else None,
            "date": self.appointment_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "duration_minutes": self.duration_minutes,
            "status": self.status.value if self.status else None,
            "cancellation_reason": self.cancellation_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
        }
