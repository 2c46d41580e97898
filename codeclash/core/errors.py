"""
Error taxonomy shared by every service.

Each error is an HTTPException with a fixed status code so services can raise
them directly and FastAPI renders them through the handlers installed by
``install_error_handlers``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ServiceError(HTTPException):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(ServiceError):
    status_code = 400
    default_detail = "Missing required fields"


class InvalidArgument(ServiceError):
    status_code = 400
    default_detail = "Invalid argument"


class PreconditionFailed(ServiceError):
    status_code = 400
    default_detail = "Precondition failed"


class LimitReached(ServiceError):
    status_code = 400
    default_detail = "Limit reached"


class Unauthorized(ServiceError):
    status_code = 401
    default_detail = "Unauthorized"


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Not found"


class RequestTimeout(ServiceError):
    status_code = 408
    default_detail = "Upstream request timed out"


class Conflict(ServiceError):
    status_code = 409
    default_detail = "Conflict"


class CapacityExceeded(Conflict):
    default_detail = "Team is full"


class RateLimited(ServiceError):
    status_code = 429
    default_detail = "Upstream rate limit exceeded"


class UpstreamError(ServiceError):
    status_code = 500
    default_detail = "Upstream service failed"


class ServerError(ServiceError):
    pass


# ==================== HANDLERS ====================

async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = {"message": exc.detail}
    if isinstance(exc, LimitReached):
        body["limitReached"] = True
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "error": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def install_error_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
