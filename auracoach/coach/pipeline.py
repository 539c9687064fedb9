"""Coaching pipeline: safety screen, profile fetch, session dispatch."""

import time

from loguru import logger

from auracoach.coach.router import RouteResult, SessionRouter
from auracoach.coach.safety import SafetyScreen
from auracoach.schemas.coaching import CoachingMessage
from auracoach.schemas.envelope import CoachingResponseData, ResponseMetadata
from auracoach.schemas.safety import SafetyAssessment
from auracoach.storage.profiles import ProfileRepository


def elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def crisis_response(safety: SafetyAssessment, processing_time: int) -> CoachingResponseData:
    return CoachingResponseData(
        type="CRISIS_RESPONSE",
        content=safety.response or "",
        strategy="CRISIS_INTERVENTION",
        confidence=safety.confidence,
        metadata=ResponseMetadata(
            chain_used="guardrail",
            processing_time=processing_time,
            risk_level=safety.severity.value,
        ),
        payload={"crisisIndicators": safety.model_dump(mode="json", by_alias=True, exclude={"response"})},
    )


def to_response_data(result: RouteResult, processing_time: int, risk_level: str = "none") -> CoachingResponseData:
    return CoachingResponseData(
        type=result.type,
        content=result.content,
        strategy=result.strategy,
        confidence=result.confidence,
        metadata=ResponseMetadata(
            chain_used=result.chain_used,
            processing_time=processing_time,
            risk_level=risk_level,
        ),
        payload=result.payload or None,
    )


class CoachingPipeline:
    """Runs one coaching turn in a fixed order.

    The safety screen always runs first. A blocked message never reaches the
    profile fetch or the router.
    """

    def __init__(self, safety: SafetyScreen, profiles: ProfileRepository, router: SessionRouter):
        self.safety = safety
        self.profiles = profiles
        self.router = router

    async def handle(self, message: CoachingMessage, email: str | None = None) -> CoachingResponseData:
        """Handle one message for ``message.user_id``.

        Raises:
            CoachingValidationError: If the session type's required context is missing
            NotFoundError: If a record the session depends on is absent
            PersistenceError: If the store fails on a required read or write
        """
        started = time.perf_counter()
        await self.router.validate_context(message)

        safety = await self.safety.assess(message)
        if not safety.should_proceed:
            logger.warning(
                "Message blocked by safety screen",
                user_id=message.user_id,
                severity=safety.severity.value,
                recommended_action=safety.recommended_action.value,
            )
            return crisis_response(safety, elapsed_ms(started))

        profile = await self.profiles.get_or_default(message.user_id, email)
        result = await self.router.dispatch(message, profile)

        processing_time = elapsed_ms(started)
        logger.info(
            "Coaching message handled",
            user_id=message.user_id,
            session_type=message.session_type.value,
            chain_used=result.chain_used,
            processing_time=processing_time,
        )
        return to_response_data(result, processing_time, risk_level=safety.severity.value)
