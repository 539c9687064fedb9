"""Entitlement checks for paid coaching sessions.

Billing lives with an external provider; the core only consumes a predicate.
"""

from typing import Protocol

from loguru import logger

from auracoach.core.auth_jwt import TokenUser
from auracoach.core.errors import EntitlementRequiredError
from auracoach.schemas.coaching import SessionType

# Onboarding and snapshot sessions stay free
PAID_SESSION_TYPES = frozenset(
    {
        SessionType.DIAGNOSTIC,
        SessionType.INTERVENTION,
        SessionType.REFLECTION,
        SessionType.GOAL_SETTING,
    }
)


class EntitlementChecker(Protocol):
    async def has_entitlement(self, user: TokenUser) -> bool: ...


class SubscriptionClaimChecker:
    """Reads the ``subscription.active`` claim of the verified token."""

    async def has_entitlement(self, user: TokenUser) -> bool:
        return bool(user.subscription and user.subscription.active)


class AllowAllChecker:
    async def has_entitlement(self, user: TokenUser) -> bool:
        return True


async def require_entitlement(checker: EntitlementChecker, user: TokenUser, session_type: SessionType) -> None:
    """Raise unless ``user`` may use ``session_type``.

    Raises:
        EntitlementRequiredError: If the session type is paid and the user has no entitlement
    """
    if session_type not in PAID_SESSION_TYPES:
        return
    if not await checker.has_entitlement(user):
        logger.info("Entitlement required", user_id=user.id, session_type=session_type.value)
        raise EntitlementRequiredError("An active subscription is required for this session type")
