"""Tests for rate limiting, token verification and entitlement."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from auracoach.core.auth_jwt import create_access_token, decode_access_token
from auracoach.core.entitlement import AllowAllChecker, SubscriptionClaimChecker, require_entitlement
from auracoach.core.errors import EntitlementRequiredError, PersistenceError, RateLimitExceededError
from auracoach.core.rate_limit import RateLimiter
from auracoach.schemas.coaching import SessionType


@pytest.mark.asyncio
async def test_limit_is_enforced_within_a_window(store):
    limiter = RateLimiter(store, prefix="coaching", limit=2, window_seconds=60)

    first = await limiter.check("10.0.0.1", now=120.0)
    second = await limiter.check("10.0.0.1", now=130.0)
    with pytest.raises(RateLimitExceededError) as exc_info:
        await limiter.check("10.0.0.1", now=150.0)

    assert (first.remaining, second.remaining) == (1, 0)
    assert exc_info.value.reset_in == 30
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_new_window_resets_the_count(store):
    limiter = RateLimiter(store, prefix="coaching", limit=1, window_seconds=60)

    await limiter.check("10.0.0.1", now=100.0)
    status = await limiter.check("10.0.0.1", now=185.0)

    assert status.remaining == 0
    assert status.headers()["X-RateLimit-Limit"] == "1"


@pytest.mark.asyncio
async def test_clients_are_counted_separately(store):
    limiter = RateLimiter(store, prefix="api", limit=1, window_seconds=60)

    await limiter.check("10.0.0.1", now=0.0)
    status = await limiter.check("10.0.0.2", now=0.0)

    assert status.remaining == 0


@pytest.mark.asyncio
async def test_store_failure_allows_request(store, monkeypatch):
    monkeypatch.setattr(store, "increment", AsyncMock(side_effect=PersistenceError("store down")))
    limiter = RateLimiter(store, prefix="api", limit=1, window_seconds=60)

    status = await limiter.check("10.0.0.1", now=0.0)

    assert status.remaining == 1


def test_token_round_trip(config):
    token = create_access_token(
        "user-7",
        email="seven@example.com",
        role="coach",
        subscription={"active": True, "plan": "pro"},
        config=config,
    )

    user = decode_access_token(token, config)

    assert user.id == "user-7"
    assert user.role == "coach"
    assert user.subscription.active is True


def test_expired_token_is_rejected(config):
    token = create_access_token("user-7", expires_in=timedelta(seconds=-5), config=config)

    with pytest.raises(ValueError, match="Invalid or expired"):
        decode_access_token(token, config)


def test_tokens_are_rejected_without_secret(config):
    token = create_access_token("user-7", config=config)
    unconfigured = config.model_copy(update={"auth_secret_key": ""})

    with pytest.raises(ValueError, match="not configured"):
        decode_access_token(token, unconfigured)


@pytest.mark.asyncio
async def test_paid_session_requires_subscription(config):
    user = decode_access_token(create_access_token("user-1", subscription={"active": False}, config=config), config)

    with pytest.raises(EntitlementRequiredError):
        await require_entitlement(SubscriptionClaimChecker(), user, SessionType.DIAGNOSTIC)

    await require_entitlement(SubscriptionClaimChecker(), user, SessionType.ONBOARDING_DIAGNOSTIC)
    await require_entitlement(AllowAllChecker(), user, SessionType.REFLECTION)
