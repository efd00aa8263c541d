"""
Pydantic schemas for reviews and chat review drafts
"""
from pydantic import BaseModel, Field
from typing import Optional, Literal


class CreateReviewRequest(BaseModel):
    """One-shot review; photos are references from the media store"""
    appointment_id: int = Field(..., gt=0)
    rating: int
    comment: str = Field(..., min_length=1, max_length=2000)
    photo_before_ref: Optional[str] = Field(None, max_length=255)
    photo_after_ref: Optional[str] = Field(None, max_length=255)


class StartDraftRequest(BaseModel):
    appointment_id: int = Field(..., gt=0)
    rating: int


class AttachPhotoRequest(BaseModel):
    slot: Literal["before", "after"]
    photo_ref: str = Field(..., min_length=1, max_length=255)


class CommentRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    user_name: Optional[str] = None
    appointment_id: int
    rating: int
    comment: str
    photo_before_ref: Optional[str] = None
    photo_after_ref: Optional[str] = None
    has_photos: bool
    review_date: Optional[str] = None


class ReviewDraftResponse(BaseModel):
    session_key: str
    appointment_id: int
    rating: int
    photo_before_ref: Optional[str] = None
    photo_after_ref: Optional[str] = None
    comment: Optional[str] = None
    expires_at: str
