"""Safety screen schemas.

``CrisisIndicators`` only lives for one request. It is never persisted.
"""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auracoach.schemas.base import FrozenCamelModel


class Severity(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    IMMEDIATE = "immediate"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def at_least(self, other: "Severity") -> "Severity":
        return self if self.rank >= other.rank else other


_SEVERITY_ORDER = [Severity.NONE, Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.IMMEDIATE]


class RecommendedAction(StrEnum):
    CONTINUE = "continue"
    ESCALATE = "escalate"
    EMERGENCY = "emergency"


class CrisisIndicators(FrozenCamelModel):
    suicidal_ideation: bool = False
    self_harm: bool = False
    substance_abuse: bool = False
    domestic_violence: bool = False
    psychosis: bool = False
    severe_depression: bool = False
    panic: bool = False
    severity: Severity = Severity.NONE
    confidence: float = Field(default=0.0, ge=0, le=1)
    recommended_action: RecommendedAction = RecommendedAction.CONTINUE


class SafetyAssessment(CrisisIndicators):
    should_proceed: bool = True
    response: str | None = None


class RiskClassification(BaseModel):
    """Shape the risk classifier must return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    risk_level: Literal["none", "low", "medium", "high", "immediate"] = Field(alias="riskLevel")
    confidence: float = Field(ge=0, le=1)
    indicators: list[str] = Field(default_factory=list)
    recommended_action: Literal["continue", "escalate", "emergency"] | None = Field(default=None, alias="recommendedAction")
    crisis_resources: list[str] = Field(default_factory=list, alias="crisisResources")
    rationale: str = ""

    @field_validator("risk_level", mode="before")
    @classmethod
    def lowercase_risk_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
