"""Intervention, microtask and reflection artifact schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auracoach.schemas.base import CamelModel, FrozenCamelModel

InterventionType = Literal["behavioral", "cognitive", "motivational", "goal_setting"]
AdaptDirection = Literal["easier", "harder", "different_approach"]


class Intervention(FrozenCamelModel):
    intervention_type: InterventionType
    strategy: str = Field(min_length=1)
    content: str = Field(min_length=1)
    action_steps: list[str] = Field(min_length=1)
    timeframe: str
    success_metrics: str
    obstacles: list[str] = Field(default_factory=list)
    adaptations: list[str] = Field(default_factory=list)
    rationale: str = ""
    confidence: float = Field(default=0.8, ge=0, le=1)

    @field_validator("action_steps")
    @classmethod
    def strip_steps(cls, value: list[str]) -> list[str]:
        steps = [step.strip() for step in value if step and step.strip()]
        if not steps:
            raise ValueError("An intervention needs at least one action step")
        return steps


class GoalProgress(CamelModel):
    title: str
    progress: float = Field(default=0.0, ge=0, le=100)


class Microtask(FrozenCamelModel):
    rationale: str = Field(min_length=1)
    task: str = Field(min_length=1)


class MomentumMirror(FrozenCamelModel):
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    user_id: str


class DashboardTeaser(FrozenCamelModel):
    teaser: str = Field(min_length=1)
    user_id: str


class ReflectionOutcome(CamelModel):
    message: str
    next_adapted_task: Microtask
    momentum_mirror: MomentumMirror
    dashboard_teaser: DashboardTeaser


class MicroHabits(BaseModel):
    model_config = ConfigDict(extra="ignore")

    habits: list[str]

    @field_validator("habits")
    @classmethod
    def exactly_five(cls, value: list[str]) -> list[str]:
        habits = [habit.strip() for habit in value if habit and habit.strip()]
        if len(habits) != 5:
            raise ValueError(f"Expected exactly 5 micro-habits, got {len(habits)}")
        return habits


class MomentumMirrorOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    body: str = Field(min_length=1)


class DashboardTeaserOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    teaser: str = Field(min_length=1)


class AdaptInterventionRequest(CamelModel):
    previous: Intervention
    feedback: str = Field(min_length=1, max_length=2000)
    direction: AdaptDirection = "different_approach"
