"""Diagnostic assessment schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auracoach.schemas.base import CamelModel
from auracoach.schemas.profile import ChangeReadiness, MotivationalProfile

DiagnosticResponseType = Literal["DIAGNOSTIC_QUESTION", "REFLECTION_PROMPT", "ASSESSMENT_SUMMARY"]

DIAGNOSTIC_STRATEGIES = {
    "ET_ASSESSMENT",
    "SDT_AUTONOMY",
    "SDT_COMPETENCE",
    "SDT_RELATEDNESS",
    "MI_EXPLORATION",
    "GST_SPECIFICITY",
    "GST_DIFFICULTY",
    "GST_FEEDBACK",
}


class PsychologicalAssessment(CamelModel):
    """Assessment delta for one turn. Merged into the profile by the caller."""

    motivational_profile: MotivationalProfile | None = None
    mindset_score: float | None = Field(default=None, ge=1, le=5)
    locus_score: float | None = Field(default=None, ge=1, le=5)
    regulatory_focus_score: float | None = Field(default=None, ge=1, le=5)
    change_readiness: ChangeReadiness | None = None
    risk_factors: dict[str, float] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True, exclude_defaults=True)


class DiagnosticResult(CamelModel):
    response: str = Field(min_length=1)
    type: DiagnosticResponseType = "DIAGNOSTIC_QUESTION"
    strategy: str = "ET_ASSESSMENT"
    confidence: float = Field(default=0.8, ge=0, le=1)
    assessment_insights: PsychologicalAssessment = Field(default_factory=PsychologicalAssessment)
    follow_up_suggestions: list[str] = Field(default_factory=list)


class _SdtScores(BaseModel):
    model_config = ConfigDict(extra="ignore")

    autonomy: int | None = Field(default=None, ge=1, le=5)
    competence: int | None = Field(default=None, ge=1, le=5)
    relatedness: int | None = Field(default=None, ge=1, le=5)


class _RiskFactors(BaseModel):
    """Risk factor estimates, 0-1. Unknown factors are dropped."""

    model_config = ConfigDict(extra="ignore")

    depression: float | None = Field(default=None, ge=0, le=1)
    anxiety: float | None = Field(default=None, ge=0, le=1)
    stress: float | None = Field(default=None, ge=0, le=1)
    burnout: float | None = Field(default=None, ge=0, le=1)


class DiagnosticModelOutput(BaseModel):
    """Shape the diagnostic prompt asks the model to return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    response: str = Field(min_length=1)
    type: DiagnosticResponseType = "DIAGNOSTIC_QUESTION"
    strategy: str = "ET_ASSESSMENT"
    confidence: float = Field(default=0.8, ge=0, le=1)
    sdt_scores: _SdtScores = Field(default_factory=_SdtScores, alias="sdtScores")
    change_readiness: ChangeReadiness | None = Field(default=None, alias="changeReadiness")
    mindset_score: float | None = Field(default=None, ge=1, le=5, alias="mindsetScore")
    locus_score: float | None = Field(default=None, ge=1, le=5, alias="locusScore")
    regulatory_focus_score: float | None = Field(default=None, ge=1, le=5, alias="regulatoryFocusScore")
    risk_factors: _RiskFactors = Field(default_factory=_RiskFactors, alias="riskFactors")
    follow_up_suggestions: list[str] = Field(default_factory=list, alias="followUpSuggestions")

    @field_validator("strategy")
    @classmethod
    def known_strategy(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in DIAGNOSTIC_STRATEGIES:
            raise ValueError(f"Unknown diagnostic strategy: {value}")
        return normalized

    def to_result(self) -> DiagnosticResult:
        scores = self.sdt_scores.model_dump(exclude_none=True)
        return DiagnosticResult(
            response=self.response.strip(),
            type=self.type,
            strategy=self.strategy,
            confidence=self.confidence,
            assessment_insights=PsychologicalAssessment(
                motivational_profile=MotivationalProfile(**scores) if scores else None,
                change_readiness=self.change_readiness,
                mindset_score=self.mindset_score,
                locus_score=self.locus_score,
                regulatory_focus_score=self.regulatory_focus_score,
                risk_factors=self.risk_factors.model_dump(exclude_none=True),
            ),
            follow_up_suggestions=[s.strip() for s in self.follow_up_suggestions if s.strip()][:3],
        )
