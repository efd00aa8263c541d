# ============================================================================
# FILE: detailing/api/v1/reviews.py
# Reviews: one-shot creation plus the step-by-step chat draft flow
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from detailing.api.dependencies import get_current_user, get_review_workflow_service
from detailing.api.errors import unwrap
from detailing.config.database import get_db
from detailing.models.user import User
from detailing.schemas.appointment import AppointmentListResponse
from detailing.schemas.review import (
    AttachPhotoRequest,
    CommentRequest,
    CreateReviewRequest,
    ReviewDraftResponse,
    ReviewResponse,
    StartDraftRequest,
)
from detailing.services.review.review_service import ReviewService
from detailing.services.review.review_workflow_service import ReviewWorkflowService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/eligible", response_model=AppointmentListResponse)
def get_reviewable_appointments(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """Completed appointments of the caller that are still waiting for a review"""
    appointments = unwrap(ReviewService.get_completed_appointments_for_review(db, current_user.id))
    return {
        "total": len(appointments),
        "appointments": [appointment.to_dict() for appointment in appointments]
    }


@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
        request: CreateReviewRequest,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    review = unwrap(ReviewService.create_review(
        db,
        user_id=current_user.id,
        appointment_id=request.appointment_id,
        rating=request.rating,
        comment=request.comment,
        photo_before_ref=request.photo_before_ref,
        photo_after_ref=request.photo_after_ref
    ))
    return review.to_dict()


@router.get("/appointment/{appointment_id}", response_model=list[ReviewResponse])
def get_reviews_by_appointment(
        appointment_id: int = Path(...),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    reviews = unwrap(ReviewService.get_reviews_by_appointment(db, appointment_id, current_user.id))
    return [review.to_dict() for review in reviews]


# ============================================================================
# Draft flow, keyed by the client's chat session
# ============================================================================

@router.post("/drafts/{session_key}", response_model=ReviewDraftResponse, status_code=201)
def start_review_draft(
        request: StartDraftRequest,
        session_key: str = Path(..., max_length=64),
        current_user: User = Depends(get_current_user),
        workflow: ReviewWorkflowService = Depends(get_review_workflow_service)
):
    """Pick the appointment and rating; replaces any draft of the same session"""
    draft = unwrap(workflow.start_draft(
        session_key,
        user_id=current_user.id,
        appointment_id=request.appointment_id,
        rating=request.rating
    ))
    return draft.to_dict()


@router.post("/drafts/{session_key}/photos", response_model=ReviewDraftResponse)
def attach_review_photo(
        request: AttachPhotoRequest,
        session_key: str = Path(..., max_length=64),
        current_user: User = Depends(get_current_user),
        workflow: ReviewWorkflowService = Depends(get_review_workflow_service)
):
    draft = unwrap(workflow.attach_photo(session_key, current_user.id, request.slot, request.photo_ref))
    return draft.to_dict()


@router.post("/drafts/{session_key}/comment", response_model=ReviewResponse, status_code=201)
def comment_review_draft(
        request: CommentRequest,
        session_key: str = Path(..., max_length=64),
        current_user: User = Depends(get_current_user),
        workflow: ReviewWorkflowService = Depends(get_review_workflow_service)
):
    """Add the comment and persist the review"""
    review = unwrap(workflow.set_comment(session_key, current_user.id, request.comment))
    return review.to_dict()


@router.post("/drafts/{session_key}/finalize", response_model=ReviewResponse, status_code=201)
def finalize_review_draft(
        session_key: str = Path(..., max_length=64),
        current_user: User = Depends(get_current_user),
        workflow: ReviewWorkflowService = Depends(get_review_workflow_service)
):
    review = unwrap(workflow.finalize(session_key, current_user.id))
    return review.to_dict()
