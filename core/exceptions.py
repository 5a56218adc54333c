from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging


logger = logging.getLogger(__name__)


class AuthServiceException(Exception):
    """Base exception for the auth service.

    ``message`` is what the API client sees, so it must never contain
    secrets such as OTP codes or tokens.
    """

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class InvalidOtpError(AuthServiceException):
    """OTP was never sent, already used, expired or wrong.

    The cases are deliberately indistinguishable to the caller.
    """

    def __init__(self):
        super().__init__("Invalid or expired OTP", status.HTTP_400_BAD_REQUEST)


class StorageError(AuthServiceException):
    """OTP cache unreachable or timed out. Transient, safe to retry."""

    def __init__(self, message: str = "Service temporarily unavailable. Please try again."):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


class InvalidCredentialsError(AuthServiceException):
    def __init__(self):
        super().__init__("Invalid credentials", status.HTTP_401_UNAUTHORIZED)


class InvalidTokenError(AuthServiceException):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class UserAlreadyExistsError(AuthServiceException):
    def __init__(self, field: str = "email"):
        super().__init__(f"User with this {field} already exists", status.HTTP_409_CONFLICT)


def _error_body(message: str, **extra) -> dict:
    body = {"success": False, "message": message, "data": None}
    body.update(extra)
    return body


# ---------------- Exception handlers ----------------
async def auth_service_exception_handler(request: Request, exc: AuthServiceException):
    if isinstance(exc, StorageError):
        # the underlying cause is chained on the exception, log it with traceback
        logger.error(f"Storage error on {request.method} {request.url.path}", exc_info=exc)
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}")

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message),
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Drop "input" so submitted passwords and codes are never echoed back
    errors = [
        {
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.method} {request.url.path}: {[e['loc'] for e in errors]}")

    return JSONResponse(
        status_code=422,
        content=_error_body("Validation failed", errors=errors),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


EXCEPTION_HANDLERS = {
    AuthServiceException: auth_service_exception_handler,
    RequestValidationError: validation_exception_handler,
    HTTPException: http_exception_handler,
    Exception: general_exception_handler,
}
