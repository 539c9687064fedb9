"""Error types for the coaching backend.

Distinct error types separate caller mistakes (validation, not found) from
infrastructure problems (persistence, rate limits). Generative backend and
parse failures are not listed here: they never reach the caller and are
resolved by each stage's fallback policy instead.
"""

from typing import Any


class CoachingError(Exception):
    """Base class for errors surfaced to the caller in the response envelope."""

    status_code: int = 500
    default_code: str = "APPLICATION_ERROR"

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        self.message = message
        self.code = code or self.default_code
        self.details = details
        super().__init__(message)


class CoachingValidationError(CoachingError):
    """Raised when required input is missing or malformed.

    Never silently defaulted: the caller must fix the request.
    """

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(CoachingError):
    """Raised when a record a stage depends on has not been created yet."""

    status_code = 404
    default_code = "NOT_FOUND"


class PersistenceError(CoachingError):
    """Raised when the key-value store fails on a read or write needed for correctness."""

    status_code = 503
    default_code = "KV_ERROR"


class RateLimitExceededError(CoachingError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, limit: int, reset_in: int):
        self.limit = limit
        self.reset_in = reset_in
        super().__init__(
            "Rate limit exceeded",
            details={"limit": limit, "resetIn": reset_in},
        )


class EntitlementRequiredError(CoachingError):
    status_code = 403
    default_code = "SUBSCRIPTION_REQUIRED"
