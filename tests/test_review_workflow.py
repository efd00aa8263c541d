from datetime import datetime, time, timedelta

import pytest

from conftest import FixedClock
from detailing.core.exceptions import ErrorKind
from detailing.models import AppointmentStatus, Review, ReviewDraft
from detailing.services.review.review_service import ReviewService
from detailing.services.review.review_workflow_service import ReviewWorkflowService


@pytest.fixture
def completed(catalog, make_appointment):
    return make_appointment(catalog["anna"], catalog["full"], time(10, 0), status=AppointmentStatus.COMPLETED)


@pytest.fixture
def workflow_clock():
    return FixedClock(datetime(2026, 3, 4, 12, 0))


@pytest.fixture
def workflow(db, workflow_clock):
    return ReviewWorkflowService(db, now=workflow_clock)


def test_full_flow_with_photos_and_comment(db, catalog, completed, workflow):
    anna = catalog["anna"]

    assert workflow.start_draft("chat-1001", anna.id, completed.id, 5).ok
    assert workflow.attach_photo("chat-1001", catalog["anna"].id, "before", "file-before").ok
    assert workflow.attach_photo("chat-1001", catalog["anna"].id, "after", "file-after").ok

    result = workflow.set_comment("chat-1001", catalog["anna"].id, "  Spotless, thank you  ")

    assert result.ok
    review = result.value
    assert (review.rating, review.comment) == (5, "Spotless, thank you")
    assert (review.photo_before_ref, review.photo_after_ref) == ("file-before", "file-after")
    assert review.has_photos
    assert db.get(ReviewDraft, "chat-1001") is None


def test_finalize_without_comment_uses_placeholder(catalog, completed, workflow):
    workflow.start_draft(1001, catalog["anna"].id, completed.id, 4)

    review = workflow.finalize(1001, catalog["anna"].id).value

    assert review.comment == "No comment"
    assert not review.has_photos


def test_blank_comment_gets_placeholder(catalog, completed, workflow):
    workflow.start_draft(1001, catalog["anna"].id, completed.id, 3)

    assert workflow.set_comment(1001, catalog["anna"].id, "   ").value.comment == "No comment"


def test_restarting_draft_resets_it(db, catalog, completed, workflow):
    workflow.start_draft("s", catalog["anna"].id, completed.id, 2)
    workflow.attach_photo("s", catalog["anna"].id, "before", "old-photo")

    workflow.start_draft("s", catalog["anna"].id, completed.id, 5)

    draft = db.get(ReviewDraft, "s")
    assert draft.rating == 5
    assert draft.photo_before_ref is None


@pytest.mark.parametrize("rating", [0, 6, True, "5"])
def test_invalid_rating(catalog, completed, workflow, rating):
    result = workflow.start_draft("s", catalog["anna"].id, completed.id, rating)

    assert result.error.kind == ErrorKind.VALIDATION_FAILED


def test_only_completed_own_appointments_are_reviewable(catalog, make_appointment, completed, workflow):
    confirmed = make_appointment(catalog["anna"], catalog["express"], time(15, 0))

    assert workflow.start_draft("s", catalog["anna"].id, confirmed.id, 5).error.kind == ErrorKind.INVALID_STATE
    assert workflow.start_draft("s", catalog["boris"].id, completed.id, 5).error.kind == ErrorKind.NOT_FOUND
    assert workflow.start_draft("s", catalog["anna"].id, 9999, 5).error.kind == ErrorKind.NOT_FOUND


def test_photo_requires_open_draft_and_known_slot(catalog, completed, workflow):
    assert workflow.attach_photo("nobody", catalog["anna"].id, "before", "file").error.kind == ErrorKind.INVALID_STATE

    workflow.start_draft("s", catalog["anna"].id, completed.id, 5)
    assert workflow.attach_photo("s", catalog["anna"].id, "during", "file").error.kind == ErrorKind.VALIDATION_FAILED
    assert workflow.attach_photo("s", catalog["anna"].id, "before", "").error.kind == ErrorKind.VALIDATION_FAILED


def test_finalize_without_draft(catalog, workflow):
    assert workflow.finalize("nobody", catalog["anna"].id).error.kind == ErrorKind.INVALID_STATE
    assert workflow.set_comment("nobody", catalog["anna"].id, "hi").error.kind == ErrorKind.INVALID_STATE


def test_expired_draft_is_closed_and_purged(db, catalog, completed, workflow, workflow_clock):
    workflow.start_draft("s", catalog["anna"].id, completed.id, 5)
    workflow_clock.now += timedelta(days=2)

    assert workflow.attach_photo("s", catalog["anna"].id, "before", "file").error.kind == ErrorKind.INVALID_STATE
    assert workflow.purge_expired_drafts() == 1
    assert db.query(ReviewDraft).count() == 0


def test_activity_extends_expiry(catalog, completed, workflow, workflow_clock):
    workflow.start_draft("s", catalog["anna"].id, completed.id, 5)
    workflow_clock.now += timedelta(hours=20)
    workflow.attach_photo("s", catalog["anna"].id, "before", "file")
    workflow_clock.now += timedelta(hours=20)

    assert workflow.finalize("s", catalog["anna"].id).ok


def test_appointment_is_reviewed_once(db, catalog, completed, workflow):
    anna = catalog["anna"]
    workflow.start_draft("first", anna.id, completed.id, 5)
    workflow.start_draft("second", anna.id, completed.id, 1)

    assert workflow.finalize("first", catalog["anna"].id).ok
    result = workflow.finalize("second", catalog["anna"].id)

    assert result.error.kind == ErrorKind.INVALID_STATE
    assert db.query(Review).count() == 1
    assert db.get(ReviewDraft, "second") is None
    assert workflow.start_draft("third", anna.id, completed.id, 4).error.kind == ErrorKind.INVALID_STATE


def test_eligible_appointments_exclude_reviewed(catalog, make_appointment, completed, workflow):
    anna = catalog["anna"]
    other = make_appointment(anna, catalog["express"], time(15, 0), status=AppointmentStatus.COMPLETED)
    make_appointment(anna, catalog["express"], time(17, 0))
    workflow.start_draft("s", anna.id, completed.id, 5)
    workflow.finalize("s", catalog["anna"].id)

    assert [appointment.id for appointment in workflow.eligible_appointments(anna.id).value] == [other.id]


def test_create_review_in_one_step(db, catalog, completed):
    result = ReviewService.create_review(
        db, catalog["anna"].id, completed.id, 4, "Good job", photo_after_ref="file-after"
    )

    assert result.ok
    assert result.value.photo_after_ref == "file-after"
    reviews = ReviewService.get_reviews_by_appointment(db, completed.id, catalog["anna"].id).value
    assert [review.id for review in reviews] == [
        result.value.id
    ]


def test_create_review_requires_comment(db, catalog, completed):
    result = ReviewService.create_review(db, catalog["anna"].id, completed.id, 4, "  ")

    assert result.error.kind == ErrorKind.VALIDATION_FAILED


def test_other_client_cannot_touch_a_draft(db, catalog, completed, workflow):
    anna, boris = catalog["anna"].id, catalog["boris"].id
    workflow.start_draft("chat-1001", anna, completed.id, 5)

    assert workflow.attach_photo("chat-1001", boris, "before", "boris-file").error.kind == ErrorKind.INVALID_STATE
    assert workflow.set_comment("chat-1001", boris, "written by boris").error.kind == ErrorKind.INVALID_STATE
    assert workflow.finalize("chat-1001", boris).error.kind == ErrorKind.INVALID_STATE

    draft = db.get(ReviewDraft, "chat-1001")
    assert (draft.user_id, draft.photo_before_ref, draft.comment) == (anna, None, None)
    assert db.query(Review).count() == 0

    review = workflow.finalize("chat-1001", anna).value
    assert (review.user_id, review.comment) == (anna, "No comment")


def test_live_draft_of_another_client_is_not_replaced(db, catalog, make_appointment, completed, workflow):
    boris_done = make_appointment(catalog["boris"], catalog["express"], time(15, 0), status=AppointmentStatus.COMPLETED)
    workflow.start_draft("shared", catalog["anna"].id, completed.id, 5)

    result = workflow.start_draft("shared", catalog["boris"].id, boris_done.id, 1)

    assert result.error.kind == ErrorKind.CONFLICT
    assert db.get(ReviewDraft, "shared").user_id == catalog["anna"].id


def test_expired_draft_of_another_client_can_be_reused(db, catalog, make_appointment, completed, workflow,
                                                       workflow_clock):
    boris_done = make_appointment(catalog["boris"], catalog["express"], time(15, 0), status=AppointmentStatus.COMPLETED)
    workflow.start_draft("shared", catalog["anna"].id, completed.id, 5)
    workflow_clock.now += timedelta(days=2)

    assert workflow.start_draft("shared", catalog["boris"].id, boris_done.id, 4).ok
    assert db.get(ReviewDraft, "shared").user_id == catalog["boris"].id


def test_reviews_of_foreign_appointment_are_hidden(db, catalog, completed):
    ReviewService.create_review(db, catalog["anna"].id, completed.id, 5, "Great")

    result = ReviewService.get_reviews_by_appointment(db, completed.id, catalog["boris"].id)

    assert result.error.kind == ErrorKind.NOT_FOUND
    assert ReviewService.get_reviews_by_appointment(db, 9999, catalog["anna"].id).error.kind == ErrorKind.NOT_FOUND
