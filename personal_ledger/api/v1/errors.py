"""Map domain exceptions to HTTP responses"""

import logging
from fastapi import HTTPException

from personal_ledger.domain.exceptions import (
    DomainException,
    LoanOverdueError,
    NoActiveLoanError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

STATUS_BY_EXCEPTION = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (LoanOverdueError, 403),
    (NoActiveLoanError, 409),
    (PersistenceError, 503),
]


def to_http_exception(e: DomainException, request_id: str = "unknown") -> HTTPException:
    """Refusals become 4xx with the domain message; store failures become 503"""
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(e, exc_type):
            break
    else:
        status_code = 500

    if status_code >= 500:
        logging.error(f"Request failed: {e}", extra={"request_id": request_id})
        return HTTPException(status_code=status_code, detail="Ledger store unavailable")

    logging.warning(f"Request refused: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=status_code, detail=str(e))
