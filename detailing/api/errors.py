# detailing/api/errors.py
"""Translate service Results into HTTP responses"""
from fastapi import HTTPException

from detailing.core.exceptions import ErrorKind, Result

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.DEPENDENCY_FAILURE: 503,
}


def unwrap(result: Result):
    """Return the value of a successful Result or raise the matching HTTPException"""
    if result.ok:
        return result.value

    raise HTTPException(
        status_code=STATUS_BY_KIND[result.error.kind],
        detail=result.error.to_dict()
    )
