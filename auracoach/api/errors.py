"""Exception handlers rendering errors in the response envelope."""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from auracoach.core.errors import CoachingError, RateLimitExceededError
from auracoach.schemas.envelope import ApiResponse

_HTTP_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def _envelope(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse.fail(message, code, details, request_id=getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(mode="json", by_alias=True, exclude_none=True)),
        headers=headers,
    )


async def coaching_error_handler(request: Request, exc: CoachingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, code=exc.code, status_code=exc.status_code)

    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(exc.reset_in),
            "Retry-After": str(exc.reset_in),
        }
    return _envelope(request, exc.status_code, exc.message, exc.code, exc.details, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    logger.info("Request validation failed", path=request.url.path, error_count=len(errors))
    return _envelope(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Request validation failed",
        "VALIDATION_ERROR",
        {"errors": errors},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(
        request,
        exc.status_code,
        str(exc.detail),
        _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoachingError, coaching_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
