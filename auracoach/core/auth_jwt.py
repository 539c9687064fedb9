"""JWT token creation and verification utilities.

Tokens are issued by the external authentication service. The coaching core
trusts the verified claims: ``sub`` (user id), ``email``, ``role`` and
``subscription``.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from jose import JWTError, jwt
from loguru import logger
from pydantic import BaseModel, ValidationError

from auracoach.config.settings import Settings, settings


class Subscription(BaseModel):
    active: bool = False
    plan: str | None = None


class TokenUser(BaseModel):
    id: str
    email: str | None = None
    role: Literal["user", "coach", "admin"] = "user"
    subscription: Subscription | None = None


def create_access_token(
    user_id: str,
    *,
    email: str | None = None,
    role: str = "user",
    subscription: dict[str, Any] | None = None,
    expires_in: timedelta = timedelta(hours=1),
    config: Settings | None = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: User ID to encode in the 'sub' claim
        email: Optional email claim
        role: Role claim
        subscription: Optional subscription claim, e.g. {"active": True, "plan": "pro"}
        expires_in: Token lifetime
        config: Settings to sign with; defaults to the module settings

    Returns:
        JWT token string
    """
    config = config or settings
    if not user_id:
        raise ValueError("user_id cannot be None or empty")

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {"sub": str(user_id), "role": role, "iat": now, "exp": now + expires_in}
    if email is not None:
        payload["email"] = email
    if subscription is not None:
        payload["subscription"] = subscription
    return jwt.encode(payload, config.auth_secret_key, algorithm=config.auth_algorithm)


def decode_access_token(token: str, config: Settings | None = None) -> TokenUser:
    """Decode and verify an access token.

    Args:
        token: JWT token string
        config: Settings to verify with; defaults to the module settings

    Returns:
        The verified user

    Raises:
        ValueError: If the token is invalid, expired or lacks a user ID
    """
    config = config or settings
    if not config.auth_secret_key:
        raise ValueError("Token verification is not configured")
    try:
        payload = jwt.decode(token, config.auth_secret_key, algorithms=[config.auth_algorithm])
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise ValueError("Invalid or expired token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    try:
        return TokenUser(
            id=str(user_id),
            email=payload.get("email"),
            role=payload.get("role") or "user",
            subscription=payload.get("subscription"),
        )
    except ValidationError as e:
        raise ValueError("Token claims are malformed") from e
