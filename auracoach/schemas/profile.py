"""User profile schemas.

The profile is owned by the key-value store. Stages receive a fresh copy per
request and never mutate it; updates go through ``ProfileRepository``.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from auracoach.schemas.base import CamelModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Preferences(CamelModel):
    theme: Literal["calm", "professional"] = "calm"
    notifications: bool = True
    coaching_style: Literal["supportive", "challenging", "analytical"] = "supportive"


class PersonalityScores(CamelModel):
    """Five-factor personality scores, 1-5."""

    openness: float | None = Field(default=None, ge=1, le=5)
    conscientiousness: float | None = Field(default=None, ge=1, le=5)
    extraversion: float | None = Field(default=None, ge=1, le=5)
    agreeableness: float | None = Field(default=None, ge=1, le=5)
    neuroticism: float | None = Field(default=None, ge=1, le=5)


class MotivationalProfile(CamelModel):
    """Self-Determination Theory need satisfaction, 1-5."""

    autonomy: int | None = Field(default=None, ge=1, le=5)
    competence: int | None = Field(default=None, ge=1, le=5)
    relatedness: int | None = Field(default=None, ge=1, le=5)


ChangeReadiness = Literal["precontemplation", "contemplation", "preparation", "action", "maintenance"]


class PsychologicalProfile(CamelModel):
    mindset: Literal["growth", "fixed"] | None = None
    locus: Literal["internal", "external"] | None = None
    regulatory_focus: Literal["promotion", "prevention"] | None = None
    personality: PersonalityScores | None = None
    motivational_profile: MotivationalProfile | None = None
    change_readiness: ChangeReadiness | None = None
    # 1-5 scores from diagnostic conversations
    mindset_score: float | None = Field(default=None, ge=1, le=5)
    locus_score: float | None = Field(default=None, ge=1, le=5)
    regulatory_focus_score: float | None = Field(default=None, ge=1, le=5)
    risk_factors: dict[str, float] = Field(default_factory=dict)


class UserProfile(CamelModel):
    id: str
    email: str | None = None
    username: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    last_active: datetime = Field(default_factory=_utc_now)
    preferences: Preferences = Field(default_factory=Preferences)
    psychological_profile: PsychologicalProfile | None = None

    @classmethod
    def default_for(cls, user_id: str, email: str | None = None) -> "UserProfile":
        return cls(id=user_id, email=email)


class PreferencesUpdate(CamelModel):
    theme: Literal["calm", "professional"] | None = None
    notifications: bool | None = None
    coaching_style: Literal["supportive", "challenging", "analytical"] | None = None


class PsychologicalProfileUpdate(CamelModel):
    mindset: Literal["growth", "fixed"] | None = None
    locus: Literal["internal", "external"] | None = None
    regulatory_focus: Literal["promotion", "prevention"] | None = None
    personality: PersonalityScores | None = None


class ProfileUpdate(CamelModel):
    """Partial profile update; only fields that are set are merged."""

    preferences: PreferencesUpdate | None = None
    psychological_profile: PsychologicalProfileUpdate | None = None
