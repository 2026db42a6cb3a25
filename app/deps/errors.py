from fastapi import HTTPException

from app.core.errors import BillingError, ConflictError, NotFoundError


def http_error(exc: BillingError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
