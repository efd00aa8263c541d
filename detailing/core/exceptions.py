# detailing/core/exceptions.py
"""
Error taxonomy shared by the booking services.

Expected outcomes (missing records, busy slots, illegal transitions, bad input)
travel back to callers as a tagged ``Result`` instead of an exception, so route
handlers and bot handlers can branch on ``result.error.kind``.
"""
import enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    VALIDATION_FAILED = "validation_failed"
    DEPENDENCY_FAILURE = "dependency_failure"


class ServiceError:
    """Error half of a Result"""

    def __init__(self, kind: ErrorKind, message: str, details: Optional[dict] = None):
        self.kind = kind
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self):
        return f"<ServiceError(kind={self.kind.value}, message={self.message!r})>"


class Result(Generic[T]):
    """Either a value or a ServiceError, never both"""

    def __init__(self, value: Optional[T] = None, error: Optional[ServiceError] = None):
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, **details) -> "Result":
        return cls(error=ServiceError(kind, message, details))

    @classmethod
    def not_found(cls, message: str, **details) -> "Result":
        return cls.failure(ErrorKind.NOT_FOUND, message, **details)

    @classmethod
    def conflict(cls, message: str, **details) -> "Result":
        return cls.failure(ErrorKind.CONFLICT, message, **details)

    @classmethod
    def invalid_state(cls, message: str, **details) -> "Result":
        return cls.failure(ErrorKind.INVALID_STATE, message, **details)

    @classmethod
    def validation_failed(cls, message: str, **details) -> "Result":
        return cls.failure(ErrorKind.VALIDATION_FAILED, message, **details)

    @classmethod
    def dependency_failure(cls, message: str = "Booking store unavailable, please retry") -> "Result":
        return cls.failure(ErrorKind.DEPENDENCY_FAILURE, message)

    def __repr__(self):
        if self.ok:
            return f"<Result(ok, value={self.value!r})>"
        return f"<Result(error={self.error!r})>"
