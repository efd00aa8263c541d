# ============================================================================
# detailing/services/review/review_workflow_service.py
# ============================================================================
"""
Chat-driven review drafts.

A client picks a completed appointment and a rating, optionally sends a
"before" and an "after" photo, then either writes a comment or finishes
explicitly. The draft is one row per chat session with an expiry; it becomes a
Review on comment/finalize and is deleted.
"""
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from detailing.config.settings import get_settings
from detailing.core.exceptions import Result
from detailing.models.appointment import Appointment
from detailing.models.review import Review, ReviewDraft
from detailing.services.review.review_service import ReviewService

logger = logging.getLogger(__name__)

PHOTO_SLOTS = ("before", "after")

SessionKey = Union[str, int]


class ReviewWorkflowService:
    """Handles review draft state per chat session"""

    def __init__(self, db: Session, now: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.now = now or datetime.now
        self.settings = get_settings()

    def eligible_appointments(self, user_id: int) -> Result[List[Appointment]]:
        return ReviewService.get_completed_appointments_for_review(self.db, user_id)

    def start_draft(
            self,
            session_key: SessionKey,
            user_id: int,
            appointment_id: int,
            rating: int
    ) -> Result[ReviewDraft]:
        """Open (or replace) the session's draft after the client picked a rating"""
        invalid = ReviewService.validate_rating(rating)
        if invalid:
            return invalid

        key = str(session_key)
        try:
            eligibility = ReviewService.check_eligibility(self.db, user_id, appointment_id)
            if not eligibility.ok:
                return eligibility

            now = self.now()
            draft = self.db.get(ReviewDraft, key)
            if draft is not None and draft.user_id != user_id and draft.expires_at > now:
                logger.warning(f"User {user_id} tried to take over review session {key}")
                return Result.conflict("Review session is in use")

            if draft is None:
                draft = ReviewDraft(session_key=key)
                self.db.add(draft)

            draft.user_id = user_id
            draft.appointment_id = appointment_id
            draft.rating = rating
            draft.photo_before_ref = None
            draft.photo_after_ref = None
            draft.comment = None
            draft.created_at = now
            self._touch(draft, now)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error starting review draft for session {key}: {e}", exc_info=True)
            return Result.dependency_failure()

        logger.info(f"Review draft started for appointment {appointment_id} (session {key})")
        return Result.success(draft)

    def attach_photo(
            self,
            session_key: SessionKey,
            user_id: int,
            slot: str,
            photo_ref: str
    ) -> Result[ReviewDraft]:
        """Store an opaque photo reference as the draft's before or after photo"""
        if slot not in PHOTO_SLOTS:
            return Result.validation_failed(f"Photo slot must be one of {', '.join(PHOTO_SLOTS)}", slot=slot)
        if not photo_ref:
            return Result.validation_failed("Photo reference must not be empty")

        key = str(session_key)
        try:
            draft = self._get_open_draft(key, user_id)
            if not draft:
                return Result.invalid_state("No review in progress, start a review first")

            if slot == "before":
                draft.photo_before_ref = photo_ref
            else:
                draft.photo_after_ref = photo_ref
            self._touch(draft, self.now())

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error attaching review photo for session {key}: {e}", exc_info=True)
            return Result.dependency_failure()

        return Result.success(draft)

    def set_comment(self, session_key: SessionKey, user_id: int, comment: Optional[str]) -> Result[Review]:
        """Record the comment and persist the review"""
        return self._complete(str(session_key), user_id, comment)

    def finalize(self, session_key: SessionKey, user_id: int) -> Result[Review]:
        """Persist the review as it is; a missing comment gets the placeholder"""
        return self._complete(str(session_key), user_id, None)

    def purge_expired_drafts(self) -> int:
        """Delete drafts past their expiry; returns how many were removed"""
        try:
            count = self.db.query(ReviewDraft).filter(
                ReviewDraft.expires_at <= self.now()
            ).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if count:
            logger.info(f"Purged {count} expired review drafts")
        return count

    def _complete(self, key: str, user_id: int, comment: Optional[str]) -> Result[Review]:
        try:
            draft = self._get_open_draft(key, user_id)
            if not draft:
                return Result.invalid_state("No review in progress")

            text = (comment or draft.comment or "").strip()

            eligibility = ReviewService.check_eligibility(self.db, draft.user_id, draft.appointment_id)
            if not eligibility.ok:
                self.db.delete(draft)
                self.db.commit()
                return eligibility

            review = Review(
                user_id=draft.user_id,
                appointment_id=draft.appointment_id,
                rating=draft.rating,
                comment=text or self.settings.REVIEW_PLACEHOLDER_COMMENT,
                photo_before_ref=draft.photo_before_ref,
                photo_after_ref=draft.photo_after_ref,
                review_date=self.now(),
            )
            self.db.add(review)
            self.db.delete(draft)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self._discard_draft(key)
            return Result.invalid_state("Appointment has already been reviewed")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error completing review for session {key}: {e}", exc_info=True)
            return Result.dependency_failure()

        logger.info(f"Review created (ID: {review.id}) from session {key}")
        return Result.success(review)

    def _get_open_draft(self, key: str, user_id: int) -> Optional[ReviewDraft]:
        """The live draft of the session, only if it belongs to the user"""
        draft = self.db.get(ReviewDraft, key)
        if draft is None or draft.user_id != user_id or draft.expires_at <= self.now():
            return None
        return draft

    def _touch(self, draft: ReviewDraft, now: datetime):
        draft.updated_at = now
        draft.expires_at = now + timedelta(minutes=self.settings.REVIEW_DRAFT_TTL_MINUTES)

    def _discard_draft(self, key: str):
        try:
            self.db.query(ReviewDraft).filter(ReviewDraft.session_key == key).delete()
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error discarding review draft for session {key}: {e}", exc_info=True)
