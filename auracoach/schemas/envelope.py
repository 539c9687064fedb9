"""HTTP response envelope shared by every route."""

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from auracoach.schemas.base import CamelModel

ResponseType = Literal[
    "DIAGNOSTIC_QUESTION",
    "REFLECTION_PROMPT",
    "ASSESSMENT_SUMMARY",
    "INTERVENTION_SUGGESTION",
    "GOAL_CLARIFICATION",
    "CRISIS_RESPONSE",
    "SNAPSHOT",
    "REFLECTION_RESULT",
]

ChainUsed = Literal[
    "guardrail",
    "diagnostic",
    "intervention",
    "reflection",
    "goal_setting",
    "onboarding_diagnostic",
    "snapshot_generation",
    "first_step",
]


class ResponseMetadata(CamelModel):
    chain_used: ChainUsed
    processing_time: int = 0
    risk_level: str = "none"


class CoachingResponseData(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: ResponseType
    content: str
    strategy: str
    confidence: float = Field(ge=0, le=1)
    metadata: ResponseMetadata
    payload: dict[str, Any] | None = None


class ErrorBody(CamelModel):
    message: str
    code: str
    details: dict[str, Any] | None = None


class EnvelopeMetadata(CamelModel):
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApiResponse(CamelModel):
    success: bool
    data: Any | None = None
    error: ErrorBody | None = None
    metadata: EnvelopeMetadata = Field(default_factory=EnvelopeMetadata)

    @classmethod
    def ok(cls, data: Any, request_id: str | None = None) -> "ApiResponse":
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        metadata = EnvelopeMetadata(request_id=request_id) if request_id else EnvelopeMetadata()
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ApiResponse":
        metadata = EnvelopeMetadata(request_id=request_id) if request_id else EnvelopeMetadata()
        return cls(success=False, error=ErrorBody(message=message, code=code, details=details), metadata=metadata)
