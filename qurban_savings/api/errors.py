"""Translate domain exceptions into HTTP responses"""

from fastapi import HTTPException
from qurban_savings.domain.exceptions import (
    AlreadyFinalized,
    CatalogAPIError,
    DomainException,
    Forbidden,
    InvalidConfiguration,
    NotFound,
    ValidationError,
)

STATUS_BY_EXCEPTION = (
    (ValidationError, 400),
    (Forbidden, 403),
    (NotFound, 404),
    (AlreadyFinalized, 409),
    (InvalidConfiguration, 422),
    (CatalogAPIError, 503),
)


def to_http_exception(exc: DomainException) -> HTTPException:
    """HTTPException carrying the error code and message; unknown domain errors are 500"""
    status_code = 500
    for exc_type, code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            status_code = code
            break

    detail = {"error": exc.code, "message": str(exc)}
    if isinstance(exc, AlreadyFinalized):
        detail["deposit_id"] = str(exc.deposit_id)
        detail["status"] = exc.status
    return HTTPException(status_code=status_code, detail=detail)
