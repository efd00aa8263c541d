"""
Shared fixtures: a throwaway SQLite booking store, a settable clock and a
notifier that records what the lifecycle asked it to send.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from detailing.config.database import build_engine
from detailing.models import Base, Appointment, AppointmentStatus, Service, ServiceCategory, User
from detailing.services.scheduling import time_slots

BOOKING_DATE = date(2026, 3, 3)


class FixedClock:
    """Callable standing in for datetime.now"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingNotifier:
    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    def notify(self, kind, appointment_id, **extra):
        if appointment_id in self.fail_for:
            raise RuntimeError("chat unreachable")
        self.calls.append((kind, appointment_id, extra))

    def kinds(self):
        return [kind for kind, _, _ in self.calls]


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 8, 0))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def catalog(db):
    """Two clients, one category and a 30- and a 60-minute service"""
    anna = User(username="anna", phone="+70000000001", telegram_chat_id=1001)
    boris = User(username="boris", phone="+70000000002", telegram_chat_id=1002)
    category = ServiceCategory(name="Washing", description="Exterior and interior washing")
    express = Service(name="Express wash", price=Decimal("25.00"), duration_minutes=30, category=category)
    full = Service(name="Full detailing", price=Decimal("120.00"), duration_minutes=60, category=category)
    db.add_all([anna, boris, category, express, full])
    db.commit()

    return {
        "anna": anna,
        "boris": boris,
        "category": category,
        "express": express,
        "full": full,
    }


@pytest.fixture
def make_appointment(db):
    """Insert an appointment row directly, bypassing the lifecycle rules"""

    def _make(user, service, start, appointment_date=BOOKING_DATE, status=AppointmentStatus.CONFIRMED):
        appointment = Appointment(
            user_id=user.id,
            service_id=service.id,
            appointment_date=appointment_date,
            start_time=start,
            end_time=time_slots.end_time(start, service.duration_minutes),
            status=status,
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture
def booking_date():
    return BOOKING_DATE
