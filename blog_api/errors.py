"""
Error types and the JSON envelope every response uses.

Services raise ``BizError`` subclasses; the handlers registered by
``install_exception_handlers`` turn them into ``{"code", "message"}``
bodies with the matching HTTP status.  Anything that is not a
``BizError`` is handled by ``RecoveryMiddleware`` as a 500.
"""
import enum
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

CODE_SUCCESS = 200
CODE_BAD_REQUEST = 400
CODE_UNAUTHORIZED = 401
CODE_SERVER_ERROR = 500

INTERNAL_ERROR_MESSAGE = "internal server error"


class AuthFailure(str, enum.Enum):
    """Why a request was rejected by the session authenticator."""

    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    BAD_SIGNATURE = "bad_signature"
    SESSION_EXPIRED = "session_expired"
    SESSION_MISMATCH = "session_mismatch"


class BizError(Exception):
    def __init__(self, code: int, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail


class BadRequestError(BizError):
    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(CODE_BAD_REQUEST, message, detail)


class UnauthorizedError(BizError):
    def __init__(self, reason: AuthFailure, message: str) -> None:
        super().__init__(CODE_UNAUTHORIZED, message, reason.value)
        self.reason = reason


def success(data: Any = None) -> dict:
    body = {"code": CODE_SUCCESS, "message": "success"}
    if data is not None:
        body["data"] = data
    return body


def fail(code: int, message: str) -> dict:
    return {"code": code, "message": message}


def _status_for(code: int) -> int:
    if code in (CODE_BAD_REQUEST, CODE_UNAUTHORIZED, CODE_SERVER_ERROR):
        return code
    return 200


async def biz_error_handler(request: Request, exc: BizError) -> JSONResponse:
    logger.warning(
        "business error",
        extra={
            "code": exc.code,
            "error": exc.message,
            "detail": exc.detail,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(status_code=_status_for(exc.code), content=fail(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    message = f"invalid parameters: {problems}"
    logger.warning(
        "validation error",
        extra={"error": message, "path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=400, content=fail(CODE_BAD_REQUEST, message))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BizError, biz_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
