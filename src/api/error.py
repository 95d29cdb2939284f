"""API error handling

Use case errors travel to the client as {"error": {"code", "message", ...}}.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from src.libs.result import Error

logger = logging.getLogger(__name__)

# Result error code -> HTTP status
ERROR_STATUS_CODES = {
    "DOCUMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ACCOUNT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "CURRENCY_MISMATCH": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "ACCOUNT_UNAVAILABLE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_AMOUNT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INSUFFICIENT_BALANCE": status.HTTP_402_PAYMENT_REQUIRED,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "CONCURRENCY_TIMEOUT": status.HTTP_503_SERVICE_UNAVAILABLE,
    "INTEGRITY_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ClientError(Exception):
    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        if status_code is None:
            status_code = ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST)
        self.status_code = status_code


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    body = {
        "code": exc.error.code,
        "message": exc.error.message,
        "retryable": exc.error.retryable,
    }
    if exc.error.reason:
        body["reason"] = exc.error.reason
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error.code} {exc.error.reason}")

    headers = {"Retry-After": "1"} if exc.error.retryable else None
    return JSONResponse(status_code=exc.status_code, content={"error": body}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "details": jsonable_errors(exc),
            }
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
