"""Session router.

Stateless dispatcher keyed on the message's declared session type. Per-user
state the reflection flow needs is read from the store at dispatch time.

Session types:
- onboarding_diagnostic: build and store the snapshot
- snapshot_generation: read the stored snapshot
- diagnostic: assess, then merge the assessment into the profile
- intervention: assess, then prescribe (assessment is not stored)
- goal_setting: five micro-habits for the current goal
- reflection: adapted microtask, momentum mirror and dashboard teaser, all stored
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pydantic import ValidationError

from auracoach.coach.diagnostic import DiagnosticAssessor
from auracoach.coach.interventions import InterventionPrescriber
from auracoach.coach.snapshot import generate_snapshot
from auracoach.core.errors import CoachingValidationError, NotFoundError, PersistenceError
from auracoach.schemas.coaching import CoachingMessage, OnboardingAnswers, SessionType
from auracoach.schemas.envelope import ChainUsed, ResponseType
from auracoach.schemas.intervention import Microtask, ReflectionOutcome
from auracoach.schemas.profile import UserProfile
from auracoach.schemas.snapshot import SnapshotData
from auracoach.storage.keys import dashboard_teaser_key, momentum_mirror_key, next_task_key, snapshot_key
from auracoach.storage.kv import KeyValueStore
from auracoach.storage.profiles import ProfileRepository

REFLECTION_MESSAGE = "Reflection processed and your next step is ready."
FIRST_STEP_MESSAGE = "Your first step is ready."


@dataclass
class RouteResult:
    type: ResponseType
    content: str
    strategy: str
    confidence: float
    chain_used: ChainUsed
    payload: dict[str, Any] = field(default_factory=dict)


def _dump(model) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


class SessionRouter:
    def __init__(
        self,
        store: KeyValueStore,
        profiles: ProfileRepository,
        assessor: DiagnosticAssessor,
        prescriber: InterventionPrescriber,
    ):
        self._store = store
        self._profiles = profiles
        self._assessor = assessor
        self._prescriber = prescriber
        self._routes = {
            SessionType.ONBOARDING_DIAGNOSTIC: self._onboarding_diagnostic,
            SessionType.SNAPSHOT_GENERATION: self._snapshot_generation,
            SessionType.DIAGNOSTIC: self._diagnostic,
            SessionType.INTERVENTION: self._intervention,
            SessionType.GOAL_SETTING: self._goal_setting,
            SessionType.REFLECTION: self._reflection,
        }

    async def validate_context(self, message: CoachingMessage) -> None:
        """Reject messages missing context their session type requires.

        Runs before any stage so that no generative call or write happens for
        an invalid request. A reflection without ``previousTask`` in its
        context falls back to the stored current task.

        Raises:
            CoachingValidationError: If required context is missing
            PersistenceError: If the stored current task cannot be read
        """
        context = message.context
        if context.session_type is SessionType.ONBOARDING_DIAGNOSTIC and context.onboarding_answers is None:
            raise CoachingValidationError(
                "onboardingAnswers are required for the onboarding_diagnostic session type",
                code="MISSING_ONBOARDING_ANSWERS",
            )
        if context.session_type is SessionType.REFLECTION:
            await self._previous_task(message)

    async def _previous_task(self, message: CoachingMessage) -> str:
        context = message.context
        previous_task = context.previous_task or await self._stored_task(message.user_id)
        if not previous_task or context.reflection_id is None:
            raise CoachingValidationError(
                "previousTask and reflectionId are required for the reflection session type",
                code="MISSING_REFLECTION_DATA",
            )
        return previous_task

    async def dispatch(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        """Run the stage sequence for the message's session type.

        Raises:
            CoachingValidationError: If required context is missing
            NotFoundError: If a stored record the route depends on is absent
            PersistenceError: If the store fails on a required read or write
        """
        handler = self._routes.get(message.session_type)
        if handler is None:
            raise CoachingValidationError(f"Unsupported session type: {message.session_type}", code="INVALID_SESSION_TYPE")

        logger.debug("Dispatching coaching message", session_type=message.session_type.value, user_id=message.user_id)
        return await handler(message, profile)

    async def _onboarding_diagnostic(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        answers = message.context.onboarding_answers
        if answers is None:
            raise CoachingValidationError("onboardingAnswers are required", code="MISSING_ONBOARDING_ANSWERS")

        snapshot = generate_snapshot(answers, profile)
        await self._store.put(snapshot_key(message.user_id), snapshot.model_dump_json(by_alias=True))
        logger.info("Snapshot stored", user_id=message.user_id, archetype=snapshot.archetype.value)
        return self._snapshot_result(snapshot, "onboarding_diagnostic")

    async def _snapshot_generation(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        raw = await self._store.get(snapshot_key(message.user_id))
        if raw is None:
            raise NotFoundError("No snapshot found for this user. Complete onboarding first.")
        try:
            snapshot = SnapshotData.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceError("Stored snapshot is corrupt") from e
        return self._snapshot_result(snapshot, "snapshot_generation")

    @staticmethod
    def _snapshot_result(snapshot: SnapshotData, chain: ChainUsed) -> RouteResult:
        return RouteResult(
            type="SNAPSHOT",
            content=snapshot.narrative_summary,
            strategy="ONBOARDING_SNAPSHOT",
            confidence=1.0,
            chain_used=chain,
            payload=_dump(snapshot),
        )

    async def _diagnostic(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        result = await self._assessor.assess_user(message, profile)
        try:
            await self._profiles.merge_assessment(message.user_id, result.assessment_insights)
        except PersistenceError as e:
            # the reply does not depend on the merge
            logger.warning(
                "Failed to merge assessment into profile (non-fatal)",
                user_id=message.user_id,
                error=str(e),
            )
        return RouteResult(
            type=result.type,
            content=result.response,
            strategy=result.strategy,
            confidence=result.confidence,
            chain_used="diagnostic",
            payload={
                "assessmentInsights": _dump(result.assessment_insights),
                "followUpSuggestions": result.follow_up_suggestions,
            },
        )

    async def _intervention(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        assessment = await self._assessor.assess_user(message, profile)
        intervention = await self._prescriber.prescribe_intervention(message, profile, assessment)
        return RouteResult(
            type="INTERVENTION_SUGGESTION",
            content=intervention.content,
            strategy=intervention.strategy,
            confidence=intervention.confidence,
            chain_used="intervention",
            payload={"intervention": _dump(intervention)},
        )

    async def _goal_setting(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        goal = message.context.current_goal or message.message
        habits = await self._prescriber.generate_micro_habits(goal, profile)
        listing = "\n".join(f"{index}. {habit}" for index, habit in enumerate(habits, start=1))
        return RouteResult(
            type="GOAL_CLARIFICATION",
            content=f"Here are five small habits to move you toward {goal}:\n{listing}",
            strategy="GST_SPECIFICITY",
            confidence=0.8,
            chain_used="goal_setting",
            payload={"goal": goal, "habits": habits},
        )

    async def _stored_task(self, user_id: str) -> str | None:
        raw = await self._store.get(next_task_key(user_id))
        if raw is None:
            return None
        try:
            return Microtask.model_validate_json(raw).task
        except ValidationError as e:
            raise PersistenceError("Stored microtask is corrupt") from e

    async def _reflection(self, message: CoachingMessage, profile: UserProfile) -> RouteResult:
        context = message.context
        previous_task = await self._previous_task(message)

        next_task, mirror, teaser = await asyncio.gather(
            self._prescriber.generate_adapted_microtask(previous_task, context.reflection_id, message.message, profile),
            self._prescriber.generate_momentum_mirror(
                context.reflection_id,
                message.message,
                profile,
                message.user_id,
                context.onboarding_answers,
            ),
            self._prescriber.generate_dashboard_teaser(profile, message.user_id, context.onboarding_answers),
        )

        await self._store.put(next_task_key(message.user_id), next_task.model_dump_json(by_alias=True))
        await self._store.put(momentum_mirror_key(message.user_id), mirror.model_dump_json(by_alias=True))
        await self._store.put(dashboard_teaser_key(message.user_id), teaser.model_dump_json(by_alias=True))
        logger.info("Reflection artifacts stored", user_id=message.user_id, reflection_id=context.reflection_id)

        outcome = ReflectionOutcome(
            message=REFLECTION_MESSAGE,
            next_adapted_task=next_task,
            momentum_mirror=mirror,
            dashboard_teaser=teaser,
        )
        return RouteResult(
            type="REFLECTION_RESULT",
            content=REFLECTION_MESSAGE,
            strategy="REFLECTION_ADAPTATION",
            confidence=0.8,
            chain_used="reflection",
            payload=_dump(outcome),
        )

    async def first_step(self, user_id: str, answers: OnboardingAnswers, profile: UserProfile) -> RouteResult:
        """Generate the first microtask after onboarding and store it as the current task."""
        task = await self._prescriber.generate_first_microtask(answers, profile)
        await self._store.put(next_task_key(user_id), task.model_dump_json(by_alias=True))
        logger.info("First microtask stored", user_id=user_id)
        return RouteResult(
            type="INTERVENTION_SUGGESTION",
            content=task.task,
            strategy="MICROTASK",
            confidence=0.8,
            chain_used="first_step",
            payload={"message": FIRST_STEP_MESSAGE, "microtask": _dump(task)},
        )
