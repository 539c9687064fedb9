"""Inbound coaching message and onboarding questionnaire schemas."""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from auracoach.schemas.base import FrozenCamelModel


class UrgencyLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRISIS = "crisis"


class SessionType(StrEnum):
    DIAGNOSTIC = "diagnostic"
    INTERVENTION = "intervention"
    REFLECTION = "reflection"
    GOAL_SETTING = "goal_setting"
    ONBOARDING_DIAGNOSTIC = "onboarding_diagnostic"
    SNAPSHOT_GENERATION = "snapshot_generation"


ReflectionId = Literal["easy", "silly", "not_done", "something_else"]

# Questionnaire spellings used by the onboarding flow
_MINDSET_ALIASES = {"developed": "growth", "stable": "fixed"}
_AGENCY_TO_LOCUS = {"primary_driver": "internal", "external_factors": "external"}


class PersonalityTraits(BaseModel):
    model_config = ConfigDict(frozen=True)

    disorganized: int | None = Field(default=None, ge=1, le=5)
    outgoing: int | None = Field(default=None, ge=1, le=5)
    moody: int | None = Field(default=None, ge=1, le=5)


class OnboardingAnswers(BaseModel):
    """Completed onboarding questionnaire.

    Field names are kept in snake_case because that is how the questionnaire
    posts them. Every trait is optional so that a partially answered
    questionnaire still produces a snapshot (with the default archetype).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    mindset: Literal["growth", "fixed"] | None = None
    locus: Literal["internal", "external"] | None = None
    regulatory_focus: Literal["promotion", "prevention"] | None = None
    personality_traits: PersonalityTraits = Field(default_factory=PersonalityTraits)
    final_focus: str | None = Field(default=None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def normalize_questionnaire_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = dict(data)

        mindset = normalized.get("mindset")
        if isinstance(mindset, str):
            normalized["mindset"] = _MINDSET_ALIASES.get(mindset, mindset)

        if not normalized.get("locus") and isinstance(normalized.get("agency"), str):
            normalized["locus"] = _AGENCY_TO_LOCUS.get(normalized["agency"], normalized["agency"])

        if not normalized.get("final_focus"):
            goal = normalized.get("final_goal_context") or normalized.get("goal")
            if goal:
                normalized["final_focus"] = goal

        if "personality_traits" not in normalized:
            traits = {key: normalized[key] for key in ("disorganized", "outgoing", "moody") if key in normalized}
            if traits:
                normalized["personality_traits"] = traits
        return normalized


class MessageContext(FrozenCamelModel):
    previous_messages: list[str] = Field(default_factory=list)
    current_goal: str | None = None
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    session_type: SessionType = SessionType.DIAGNOSTIC
    onboarding_answers: OnboardingAnswers | None = None
    previous_task: str | None = None
    reflection_id: ReflectionId | None = None


class CoachingMessage(FrozenCamelModel):
    """One turn of user input. Immutable; every stage reads it as-is."""

    message: str = Field(min_length=1, max_length=2000)
    user_id: str = Field(min_length=1)
    session_id: str | None = None
    context: MessageContext = Field(default_factory=MessageContext)

    @property
    def session_type(self) -> SessionType:
        return self.context.session_type


class FirstStepRequest(FrozenCamelModel):
    onboarding_answers: OnboardingAnswers
