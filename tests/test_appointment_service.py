from datetime import datetime, time, timedelta
import threading

import pytest

from detailing.core.exceptions import ErrorKind
from detailing.models import Appointment, AppointmentStatus
from detailing.services.appointment.appointment_service import AppointmentService
from detailing.services.availability.availability_service import AvailabilityService
from detailing.services.notification.notifier import CANCELLATION, CONFIRMATION, RESCHEDULE


@pytest.fixture
def service(db, notifier, clock):
    return AppointmentService(db, notifier=notifier, now=clock)


def live_appointments(db, service_id, appointment_date):
    return db.query(Appointment).filter(
        Appointment.service_id == service_id,
        Appointment.appointment_date == appointment_date,
        Appointment.status != AppointmentStatus.CANCELLED
    ).all()


# ----------------------------------------------------------------------
# create
# ----------------------------------------------------------------------

def test_create_books_slot_and_notifies(service, catalog, notifier, booking_date):
    result = service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0))

    assert result.ok
    appointment = result.value
    assert appointment.status == AppointmentStatus.CONFIRMED
    assert appointment.end_time == time(10, 30)
    assert notifier.calls == [(CONFIRMATION, appointment.id, {})]


def test_create_rejects_overlap(service, catalog, notifier, booking_date):
    service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0))

    result = service.create_appointment(catalog["boris"].id, catalog["express"].id, booking_date, time(10, 15))

    assert result.error.kind == ErrorKind.CONFLICT
    assert notifier.kinds() == [CONFIRMATION]


def test_back_to_back_bookings_succeed(service, catalog, booking_date):
    first = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0))
    second = service.create_appointment(catalog["boris"].id, catalog["full"].id, booking_date, time(11, 0))

    assert first.ok and second.ok


def test_create_for_unknown_service(service, catalog, booking_date):
    result = service.create_appointment(catalog["anna"].id, 9999, booking_date, time(10, 0))

    assert result.error.kind == ErrorKind.NOT_FOUND


def test_create_crossing_midnight_is_rejected(service, catalog, booking_date):
    result = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(23, 30))

    assert result.error.kind == ErrorKind.VALIDATION_FAILED


def test_notifier_failure_does_not_undo_booking(db, catalog, clock, booking_date):
    class BrokenNotifier:
        def notify(self, kind, appointment_id, **extra):
            raise RuntimeError("broker down")

    service = AppointmentService(db, notifier=BrokenNotifier(), now=clock)

    result = service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0))

    assert result.ok
    assert len(live_appointments(db, catalog["express"].id, booking_date)) == 1


def test_unique_live_slot_index_maps_to_conflict(service, catalog, monkeypatch, booking_date):
    service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0))
    monkeypatch.setattr(
        AvailabilityService, "is_time_slot_available", staticmethod(lambda *args, **kwargs: True)
    )

    result = service.create_appointment(catalog["boris"].id, catalog["express"].id, booking_date, time(10, 0))

    assert result.error.kind == ErrorKind.CONFLICT


def test_store_failure_is_reported_as_dependency_failure(service, catalog, monkeypatch, booking_date):
    def explode(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(AvailabilityService, "is_time_slot_available", staticmethod(explode))

    result = service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0))

    assert result.error.kind == ErrorKind.DEPENDENCY_FAILURE


def test_concurrent_identical_creates(session_factory, catalog, clock, booking_date):
    user_ids = [catalog["anna"].id, catalog["boris"].id]
    service_id = catalog["express"].id
    barrier = threading.Barrier(2)
    results = []

    def book(user_id):
        session = session_factory()
        try:
            barrier.wait()
            results.append(AppointmentService(session, notifier=_NullNotifier(), now=clock).create_appointment(
                user_id, service_id, booking_date, time(10, 0)
            ))
        finally:
            session.close()

    threads = [threading.Thread(target=book, args=(user_id,)) for user_id in user_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(result.ok for result in results) == [False, True]
    failed = next(result for result in results if not result.ok)
    assert failed.error.kind == ErrorKind.CONFLICT


class _NullNotifier:
    def notify(self, kind, appointment_id, **extra):
        pass


# ----------------------------------------------------------------------
# cancel
# ----------------------------------------------------------------------

def test_cancel_frees_slot(service, catalog, notifier, booking_date):
    express = catalog["express"]
    booked = service.create_appointment(catalog["anna"].id, express.id, booking_date, time(10, 0)).value

    result = service.cancel_appointment(booked.id, catalog["anna"].id, reason="Car broke down")

    assert result.ok
    assert result.value.status == AppointmentStatus.CANCELLED
    assert result.value.cancellation_reason == "Car broke down"
    assert result.value.modified_at == service.now()
    assert notifier.calls[-1] == (CANCELLATION, booked.id, {"reason": "Car broke down"})
    assert service.is_time_slot_available(express.id, booking_date, time(10, 0), 30).value is True


def test_cancel_twice_is_invalid_state(service, catalog, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0)).value
    service.cancel_appointment(booked.id, catalog["anna"].id)

    result = service.cancel_appointment(booked.id, catalog["anna"].id)

    assert result.error.kind == ErrorKind.INVALID_STATE


def test_cancel_missing_or_foreign_is_not_found(service, catalog, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["express"].id, booking_date, time(10, 0)).value

    assert service.cancel_appointment(9999, catalog["anna"].id).error.kind == ErrorKind.NOT_FOUND
    assert service.cancel_appointment(booked.id, catalog["boris"].id).error.kind == ErrorKind.NOT_FOUND


def test_cancel_completed_is_invalid_state(service, catalog, make_appointment):
    done = make_appointment(catalog["anna"], catalog["express"], time(10, 0), status=AppointmentStatus.COMPLETED)

    assert service.cancel_appointment(done.id, catalog["anna"].id).error.kind == ErrorKind.INVALID_STATE


def test_cancel_then_rebook_scenario(service, catalog, booking_date):
    express = catalog["express"]
    anna, boris = catalog["anna"].id, catalog["boris"].id

    booked = service.create_appointment(anna, express.id, booking_date, time(10, 0))
    assert booked.ok and booked.value.end_time == time(10, 30)

    assert service.create_appointment(boris, express.id, booking_date, time(10, 15)).error.kind == ErrorKind.CONFLICT

    assert service.cancel_appointment(booked.value.id, anna).ok

    assert service.create_appointment(boris, express.id, booking_date, time(10, 15)).ok


def test_rebook_same_start_after_cancel(service, catalog, booking_date):
    express = catalog["express"]
    booked = service.create_appointment(catalog["anna"].id, express.id, booking_date, time(10, 0)).value
    service.cancel_appointment(booked.id, catalog["anna"].id)

    assert service.create_appointment(catalog["boris"].id, express.id, booking_date, time(10, 0)).ok


# ----------------------------------------------------------------------
# reschedule
# ----------------------------------------------------------------------

def test_reschedule_moves_in_place(service, catalog, notifier, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0)).value
    new_date = booking_date + timedelta(days=1)

    result = service.reschedule_appointment(booked.id, catalog["anna"].id, new_date, time(14, 0))

    assert result.ok
    moved = result.value
    assert moved.id == booked.id
    assert (moved.appointment_date, moved.start_time, moved.end_time) == (new_date, time(14, 0), time(15, 0))
    assert moved.modified_at == service.now()
    assert notifier.calls[-1] == (RESCHEDULE, booked.id, {"new_date": new_date, "new_time": time(14, 0)})


def test_reschedule_may_overlap_its_own_old_slot(service, catalog, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0)).value

    result = service.reschedule_appointment(booked.id, catalog["anna"].id, booking_date, time(10, 30))

    assert result.ok
    assert result.value.end_time == time(11, 30)


def test_reschedule_into_busy_slot_conflicts(service, catalog, booking_date):
    full = catalog["full"]
    mine = service.create_appointment(catalog["anna"].id, full.id, booking_date, time(10, 0)).value
    service.create_appointment(catalog["boris"].id, full.id, booking_date, time(14, 0))

    result = service.reschedule_appointment(mine.id, catalog["anna"].id, booking_date, time(14, 30))

    assert result.error.kind == ErrorKind.CONFLICT
    db_row = service.db.get(Appointment, mine.id)
    assert db_row.start_time == time(10, 0)


def test_reschedule_inside_notice_period_is_invalid_state(service, catalog, clock, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0)).value
    clock.now = datetime.combine(booking_date, time(8, 30))

    result = service.reschedule_appointment(booked.id, catalog["anna"].id, booking_date, time(15, 0))

    assert result.error.kind == ErrorKind.INVALID_STATE


def test_reschedule_exactly_at_notice_boundary_is_allowed(service, catalog, clock, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0)).value
    clock.now = datetime.combine(booking_date, time(8, 0))

    assert service.reschedule_appointment(booked.id, catalog["anna"].id, booking_date, time(15, 0)).ok


def test_reschedule_cancelled_or_foreign(service, catalog, booking_date):
    booked = service.create_appointment(catalog["anna"].id, catalog["full"].id, booking_date, time(10, 0)).value

    foreign = service.reschedule_appointment(booked.id, catalog["boris"].id, booking_date, time(15, 0))
    assert foreign.error.kind == ErrorKind.NOT_FOUND

    service.cancel_appointment(booked.id, catalog["anna"].id)
    cancelled = service.reschedule_appointment(booked.id, catalog["anna"].id, booking_date, time(15, 0))
    assert cancelled.error.kind == ErrorKind.INVALID_STATE


def test_no_overlap_after_mixed_operations(service, catalog, booking_date):
    full = catalog["full"]
    anna, boris = catalog["anna"].id, catalog["boris"].id

    a = service.create_appointment(anna, full.id, booking_date, time(9, 0)).value
    b = service.create_appointment(boris, full.id, booking_date, time(11, 0)).value
    service.reschedule_appointment(a.id, anna, booking_date, time(10, 30))
    service.reschedule_appointment(b.id, boris, booking_date, time(10, 0))
    service.create_appointment(boris, full.id, booking_date, time(11, 30))
    service.cancel_appointment(a.id, anna)
    service.create_appointment(anna, full.id, booking_date, time(10, 30))

    live = sorted(
        (appointment.start_time, appointment.end_time)
        for appointment in live_appointments(service.db, full.id, booking_date)
    )
    for (_, previous_end), (next_start, _) in zip(live, live[1:]):
        assert previous_end <= next_start


# ----------------------------------------------------------------------
# availability wrappers
# ----------------------------------------------------------------------

def test_availability_wrappers(service, catalog, booking_date):
    express = catalog["express"]

    assert service.is_time_slot_available(express.id, booking_date, time(10, 0), 30).value is True
    assert service.is_time_slot_available(express.id, booking_date, time(10, 0), 0).error.kind == (
        ErrorKind.VALIDATION_FAILED
    )
    assert service.get_available_time_slots(express.id, booking_date).value[0] == time(9, 0)
    assert service.get_available_time_slots(9999, booking_date).value == []
