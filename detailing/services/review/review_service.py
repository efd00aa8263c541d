# detailing/services/review/review_service.py
"""Durable client reviews of completed appointments"""
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from detailing.core.exceptions import Result
from detailing.models.appointment import Appointment, AppointmentStatus
from detailing.models.review import Review

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:
    """Eligibility rules and persistence for reviews"""

    @staticmethod
    def validate_rating(rating: int) -> Optional[Result]:
        if not isinstance(rating, int) or isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING:
            return Result.validation_failed(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                rating=rating
            )
        return None

    @staticmethod
    def check_eligibility(db: Session, user_id: int, appointment_id: int) -> Result[Appointment]:
        """A user may review their own completed appointment once"""
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.user_id == user_id
        ).first()

        if not appointment:
            return Result.not_found(f"Appointment {appointment_id} not found")

        if appointment.status != AppointmentStatus.COMPLETED:
            return Result.invalid_state(
                "Only completed appointments can be reviewed",
                status=appointment.status.value
            )

        already_reviewed = db.query(Review.id).filter(
            Review.appointment_id == appointment_id
        ).first() is not None
        if already_reviewed:
            return Result.invalid_state(f"Appointment {appointment_id} has already been reviewed")

        return Result.success(appointment)

    @staticmethod
    def get_completed_appointments_for_review(db: Session, user_id: int) -> Result[List[Appointment]]:
        """Completed appointments of the user that have no review yet"""
        try:
            reviewed = db.query(Review.appointment_id)
            appointments = db.query(Appointment).options(
                joinedload(Appointment.service)
            ).filter(
                Appointment.user_id == user_id,
                Appointment.status == AppointmentStatus.COMPLETED,
                Appointment.id.not_in(reviewed)
            ).order_by(
                Appointment.appointment_date.desc(),
                Appointment.start_time.desc()
            ).all()
        except Exception as e:
            logger.error(f"Error loading reviewable appointments for user {user_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        return Result.success(appointments)

    @staticmethod
    def create_review(
            db: Session,
            user_id: int,
            appointment_id: int,
            rating: int,
            comment: str,
            photo_before_ref: Optional[str] = None,
            photo_after_ref: Optional[str] = None
    ) -> Result[Review]:
        """Persist a finished review in one step"""
        invalid = ReviewService.validate_rating(rating)
        if invalid:
            return invalid

        if not comment or not comment.strip():
            return Result.validation_failed("Comment must not be empty")

        try:
            eligibility = ReviewService.check_eligibility(db, user_id, appointment_id)
            if not eligibility.ok:
                return eligibility

            review = Review(
                user_id=user_id,
                appointment_id=appointment_id,
                rating=rating,
                comment=comment.strip(),
                photo_before_ref=photo_before_ref,
                photo_after_ref=photo_after_ref,
            )
            db.add(review)
            db.commit()
        except IntegrityError:
            db.rollback()
            return Result.invalid_state(f"Appointment {appointment_id} has already been reviewed")
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating review: {e}", exc_info=True)
            return Result.dependency_failure()

        logger.info(f"Review created (ID: {review.id})")
        return Result.success(review)

    @staticmethod
    def get_reviews_by_appointment(db: Session, appointment_id: int, user_id: int) -> Result[List[Review]]:
        """Reviews of one of the user's own appointments"""
        try:
            owned = db.query(Appointment.id).filter(
                Appointment.id == appointment_id,
                Appointment.user_id == user_id
            ).first()
            if owned is None:
                return Result.not_found(f"Appointment {appointment_id} not found")

            reviews = db.query(Review).options(
                joinedload(Review.user)
            ).filter(Review.appointment_id == appointment_id).all()
        except Exception as e:
            logger.error(f"Error loading reviews of appointment {appointment_id}: {e}", exc_info=True)
            db.rollback()
            return Result.dependency_failure()

        return Result.success(reviews)
