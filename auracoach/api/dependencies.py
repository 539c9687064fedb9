"""FastAPI dependencies: services, rate limiting and authentication."""

from typing import NoReturn

from fastapi import Depends, HTTPException, Request, Response, status
from loguru import logger

from auracoach.core.auth_jwt import TokenUser, decode_access_token
from auracoach.services import CoachingServices


def get_services(request: Request) -> CoachingServices:
    return request.app.state.services


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def client_id(request: Request) -> str:
    """Best-effort client address; the first X-Forwarded-For hop wins."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


async def coaching_rate_limit(
    request: Request,
    response: Response,
    services: CoachingServices = Depends(get_services),
) -> None:
    status_ = await services.coaching_limiter.check(client_id(request))
    response.headers.update(status_.headers())


async def default_rate_limit(
    request: Request,
    response: Response,
    services: CoachingServices = Depends(get_services),
) -> None:
    status_ = await services.default_limiter.check(client_id(request))
    response.headers.update(status_.headers())


def _raise_unauthorized(detail: str = "Authentication required") -> NoReturn:
    """Raise HTTPException for unauthorized requests."""
    logger.warning(f"Unauthorized request: {detail}")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(request: Request, services: CoachingServices = Depends(get_services)) -> TokenUser:
    """FastAPI dependency returning the verified user from the Bearer token.

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        _raise_unauthorized("Missing Authorization header")
    if not auth_header.startswith("Bearer "):
        _raise_unauthorized("Invalid Authorization header format")

    token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        _raise_unauthorized("Missing token")

    try:
        return decode_access_token(token, services.settings)
    except ValueError as e:
        _raise_unauthorized(str(e))
