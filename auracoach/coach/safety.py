"""Safety screen run before any coaching logic.

Every inbound message passes through ``SafetyScreen.assess``. A cheap keyword
and intensity pre-filter decides whether the risk classifier is needed at
all; anything that goes wrong fails closed.
"""

import re

from loguru import logger

from auracoach.coach import config as stage_config
from auracoach.coach.fallbacks import FallbackPolicy
from auracoach.coach.prompts import GUARDRAIL_SYSTEM_PROMPT, GUARDRAIL_USER_PROMPT
from auracoach.config.settings import Settings
from auracoach.llm.backend import ChatMessage, GenerativeBackend, complete_structured
from auracoach.schemas.coaching import CoachingMessage, UrgencyLevel
from auracoach.schemas.safety import RecommendedAction, RiskClassification, SafetyAssessment, Severity

_INTENSITY_PATTERN = re.compile(
    r"!{2,}|\bcan[’']?t\b|\bdesperate\b|\boverwhelmed\b|\bbreaking\b",
    re.IGNORECASE,
)

_ELEVATED_URGENCY = {UrgencyLevel.HIGH, UrgencyLevel.CRISIS}

# Substrings of classifier indicators (or matched keywords) that set each flag
_FLAG_PATTERNS: dict[str, tuple[str, ...]] = {
    "suicidal_ideation": ("suicid", "self-harm", "kill myself", "end my life", "want to die", "better off dead"),
    "self_harm": ("self-harm", "self harm", "cutting", "cut myself", "hurt myself"),
    "substance_abuse": ("substance", "alcohol", "drug", "overdose"),
    "domestic_violence": ("domestic", "abuse", "violence"),
    "psychosis": ("psychosis", "psychotic", "hallucinat", "voices"),
    "severe_depression": ("depress", "hopeless"),
    "panic": ("panic", "anxiety attack"),
}

_ACTION_BY_SEVERITY = {
    Severity.NONE: RecommendedAction.CONTINUE,
    Severity.LOW: RecommendedAction.CONTINUE,
    Severity.MEDIUM: RecommendedAction.ESCALATE,
    Severity.HIGH: RecommendedAction.ESCALATE,
    Severity.IMMEDIATE: RecommendedAction.EMERGENCY,
}

CRISIS_RESPONSES = {
    Severity.IMMEDIATE: (
        "I'm really concerned about your safety right now, and I want you to get support immediately. "
        "If you are in danger, please call 911 (US) or 999 (UK), or go to your nearest emergency room. "
        "You can also call or text 988 to reach the Suicide & Crisis Lifeline in the US and Canada, "
        "or call 111 in the UK. You don't have to go through this alone."
    ),
    Severity.HIGH: (
        "It sounds like you're carrying something really heavy right now, and you deserve support from someone "
        "trained to help. Please consider calling or texting 988 (Suicide & Crisis Lifeline, US and Canada), "
        "or 111 in the UK. Talking to someone can make a real difference, and I'll be here when you're ready."
    ),
    Severity.MEDIUM: (
        "Thank you for sharing this with me. What you're feeling matters, and it may help to talk it through "
        "with someone you trust or a mental health professional. If things feel harder, you can call or text "
        "988 anytime in the US and Canada."
    ),
}

FAIL_CLOSED_RESPONSE = (
    "I want to make sure you get the right support, so let's connect you with a counselor. "
    "If you need to talk to someone now, you can call or text 988 anytime in the US and Canada, "
    "or call 111 in the UK."
)


def find_intensity_markers(text: str) -> list[str]:
    return [match.group(0) for match in _INTENSITY_PATTERN.finditer(text)]


def flags_from_indicators(indicators: list[str]) -> dict[str, bool]:
    lowered = [indicator.lower() for indicator in indicators]
    return {
        flag: any(pattern in indicator for indicator in lowered for pattern in patterns)
        for flag, patterns in _FLAG_PATTERNS.items()
    }


def _fail_closed() -> SafetyAssessment:
    return SafetyAssessment(
        severity=Severity.MEDIUM,
        confidence=0.0,
        recommended_action=RecommendedAction.ESCALATE,
        should_proceed=False,
        response=FAIL_CLOSED_RESPONSE,
    )


class SafetyScreen:
    """Crisis screen with a keyword pre-filter and a structured risk classifier.

    Severity ``none`` and ``low`` let the message proceed. ``medium`` and above
    stop coaching for the turn and return a tiered crisis-resource response.
    Any error during assessment yields ``medium`` with ``should_proceed=False``.
    """

    def __init__(self, backend: GenerativeBackend, config: Settings):
        self._backend = backend
        self._config = config
        self._keywords = list(config.crisis_keywords)
        self._fallback = FallbackPolicy.uniform("guardrail", _fail_closed)

    def keyword_hits(self, text: str) -> list[str]:
        lowered = text.lower()
        return [keyword for keyword in self._keywords if keyword in lowered]

    async def assess(self, message: CoachingMessage) -> SafetyAssessment:
        """Assess one message.

        Args:
            message: Inbound coaching message

        Returns:
            Safety assessment with crisis flags, severity and, when blocked,
            the response to show the user. Never raises.
        """
        return await self._fallback.run(self._assess(message))

    async def _assess(self, message: CoachingMessage) -> SafetyAssessment:
        hits = self.keyword_hits(message.message)
        elevated = message.context.urgency_level in _ELEVATED_URGENCY
        markers = find_intensity_markers(message.message)

        if not hits and not elevated and not markers:
            logger.debug("Safety pre-filter clear", message_length=len(message.message))
            return SafetyAssessment(severity=Severity.NONE, confidence=0.9)

        classification = await complete_structured(
            self._backend,
            system_prompt=GUARDRAIL_SYSTEM_PROMPT,
            messages=[
                ChatMessage(
                    role="user",
                    content=GUARDRAIL_USER_PROMPT.format(
                        urgency_level=message.context.urgency_level.value,
                        message=message.message,
                    ),
                )
            ],
            options=stage_config.GUARDRAIL.options(self._config),
            schema=RiskClassification,
            context="guardrail",
            timeout=self._config.llm_timeout_seconds,
        )

        severity = Severity(classification.risk_level)
        if hits:
            # an exact keyword match is never cleared by the classifier
            severity = severity.at_least(Severity.HIGH)

        should_proceed = severity in (Severity.NONE, Severity.LOW)
        assessment = SafetyAssessment(
            **flags_from_indicators(classification.indicators + hits),
            severity=severity,
            confidence=classification.confidence,
            recommended_action=_ACTION_BY_SEVERITY[severity],
            should_proceed=should_proceed,
            response=None if should_proceed else CRISIS_RESPONSES[severity],
        )

        logger.info(
            "Safety assessment completed",
            severity=severity.value,
            keyword_hits=len(hits),
            intensity_markers=len(markers),
            elevated_urgency=elevated,
            should_proceed=should_proceed,
        )
        return assessment
