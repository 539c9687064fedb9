from enum import StrEnum
from typing import Literal

from pydantic import Field, field_validator

from auracoach.schemas.base import FrozenCamelModel

# Wording the snapshot must never use about a user
JUDGMENTAL_TERMS = ("deficient", "deficiency", "lacking", "lack ", "bad", "weak", "poor", "failure", "broken")


class Archetype(StrEnum):
    VISIONARY_ACHIEVER = "Visionary Achiever"
    STEADY_BUILDER = "Steady Builder"
    ADAPTIVE_OPTIMIST = "Adaptive Optimist"
    COMPASSIONATE_ACHIEVER = "Compassionate Achiever"
    DETERMINED_SPECIALIST = "Determined Specialist"
    RELIABLE_EXECUTOR = "Reliable Executor"
    OPPORTUNISTIC_REALIST = "Opportunistic Realist"
    THOUGHTFUL_PLANNER = "Thoughtful Planner"


def find_judgmental_terms(text: str) -> list[str]:
    lowered = f"{text.lower()} "
    return [term.strip() for term in JUDGMENTAL_TERMS if term in lowered]


class Insight(FrozenCamelModel):
    type: Literal["spectrum", "balance", "ring"]
    title: str
    description: str = Field(min_length=1)
    user_score: float = Field(ge=1, le=5)
    min_label: str | None = None
    max_label: str | None = None
    left_label: str | None = None
    right_label: str | None = None

    @field_validator("description")
    @classmethod
    def non_judgmental(cls, value: str) -> str:
        found = find_judgmental_terms(value)
        if found:
            raise ValueError(f"Insight description uses judgmental wording: {', '.join(found)}")
        return value


class SnapshotData(FrozenCamelModel):
    archetype: Archetype
    insights: tuple[Insight, Insight, Insight]
    user_goal: str
    narrative_summary: str
