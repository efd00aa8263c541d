# ============================================================================
# FILE: detailing/api/dependencies.py
# Bearer token verification and service wiring for route handlers
# ============================================================================
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt

from detailing.config.database import get_db
from detailing.config.settings import settings
from detailing.models.user import User
from detailing.services.appointment.appointment_service import AppointmentService
from detailing.services.notification.notifier import CeleryNotifier, Notifier
from detailing.services.review.review_workflow_service import ReviewWorkflowService

# ============================================================================
# Security Schemes
# ============================================================================

# Tokens are issued by the bot backend; this service only verifies them
client_token_security = HTTPBearer(
    scheme_name="Client Bearer Token",
    description="JWT whose `sub` claim is the client's user id"
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_client_token(token: str) -> int:
    """
    Verify a client token and return the user id it was issued for.

    Tokens carrying a ``type`` claim other than ``access`` (refresh tokens)
    are rejected.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise _unauthorized(f"Could not validate credentials: {e}")

    if payload.get("type", "access") != "access":
        raise _unauthorized("Access token required")

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid user ID in token")


async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(client_token_security),
        db: Session = Depends(get_db)
) -> User:
    """Dependency resolving the client behind the bearer token (401 if unknown)"""
    user = db.get(User, decode_client_token(credentials.credentials))
    if user is None:
        raise _unauthorized("User not found")
    return user


# ============================================================================
# Service Dependencies
# ============================================================================

def get_notifier() -> Notifier:
    return CeleryNotifier()


def get_appointment_service(
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier)
) -> AppointmentService:
    return AppointmentService(db, notifier=notifier)


def get_review_workflow_service(db: Session = Depends(get_db)) -> ReviewWorkflowService:
    return ReviewWorkflowService(db)
