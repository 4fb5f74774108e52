"""JSON envelope and error-code to HTTP status mapping."""

from decimal import Decimal
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from celeiro.domain.errors import (
    AuthenticationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
    ValidationError,
)

ERROR_STATUS: dict[str, int] = {
    "EMAIL_REQUIRED": 400,
    "EMAIL_FORMAT_INVALID": 400,
    "CODE_REQUIRED": 400,
    "CODE_FORMAT_INVALID": 400,
    "MISSING_REQUIRED_FIELDS": 400,
    "INVALID_FORMAT": 400,
    "INVALID_ROLE": 400,
    "INVALID_JSON_SYNTAX": 400,
    "INVALID_JSON_TYPE": 400,
    "NO_TRANSACTIONS_FOUND": 400,
    "ACTIVATION_FAILED": 401,
    "INVALID_CODE": 401,
    "CODE_EXPIRED": 401,
    "SESSION_NOT_FOUND": 401,
    "SESSION_EXPIRED": 401,
    "INVALID_SESSION_FORMAT": 401,
    "INVALID_SESSION": 401,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "USER_NOT_FOUND": 404,
    "INVITE_NOT_FOUND": 404,
    "CONFLICT": 409,
    "USER_ALREADY_EXISTS": 409,
    "ALREADY_MEMBER": 409,
    "INVITE_EXPIRED": 409,
    "INVITE_ALREADY_ACCEPTED": 409,
    "UPSTREAM_ERROR": 500,
}

# Fallback for codes missing from the table.
_CLASS_STATUS: tuple[tuple[type, int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UpstreamError, 500),
)


def status_for(error: DomainError) -> int:
    if error.code in ERROR_STATUS:
        return ERROR_STATUS[error.code]
    for cls, status in _CLASS_STATUS:
        if isinstance(error, cls):
            return status
    return 400


def encode(data: Any) -> Any:
    """Encode dataclasses, enums and dates; Decimals become strings."""
    return jsonable_encoder(data, custom_encoder={Decimal: str})


def success(data: Any = None, status_code: int = 200, message: Optional[str] = None) -> JSONResponse:
    body: dict[str, Any] = {"status": status_code}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = encode(data)
    return JSONResponse(status_code=status_code, content=body)


def error(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": status_code, "code": code, "message": message},
    )


def domain_error(exc: DomainError) -> JSONResponse:
    return error(exc.code, exc.message, status_for(exc))
