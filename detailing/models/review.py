# detailing/models/review.py
"""
Review and ReviewDraft models.

A ReviewDraft is the in-progress review a client builds in a chat session
(rating -> photos -> comment). It is keyed by the chat session, expires after a
TTL and is turned into a Review when the client submits a comment or finishes.
Photos are opaque references handed out by the media collaborator.
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from detailing.models.base import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # One review per appointment
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, unique=True)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    photo_before_ref = Column(String(255), nullable=True)
    photo_after_ref = Column(String(255), nullable=True)

    review_date = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="review")
    user = relationship("User")

    def __repr__(self):
        return f"<Review(id={self.id}, appointment_id={self.appointment_id}, rating={self.rating})>"

    @property
    def has_photos(self) -> bool:
        return bool(self.photo_before_ref or self.photo_after_ref)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.username if self.user else None,
            "appointment_id": self.appointment_id,
            "rating": self.rating,
            "comment": self.comment,
            "photo_before_ref": self.photo_before_ref,
            "photo_after_ref": self.photo_after_ref,
            "has_photos": self.has_photos,
            "review_date": self.review_date.isoformat() if self.review_date else None,
        }


class ReviewDraft(Base):
    __tablename__ = "review_drafts"

    session_key = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False)

    rating = Column(Integer, nullable=False)
    photo_before_ref = Column(String(255), nullable=True)
    photo_after_ref = Column(String(255), nullable=True)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<ReviewDraft(session_key={self.session_key}, appointment_id={self.appointment_id})>"

    def to_dict(self):
        return {
            "session_key": self.session_key,
            "appointment_id": self.appointment_id,
            "rating": self.rating,
            "photo_before_ref": self.photo_before_ref,
            "photo_after_ref": self.photo_after_ref,
            "comment": self.comment,
            "expires_at": self.expires_at.isoformat(),
        }
