"""Diagnostic assessor.

Turns one message plus the stored profile and recent history into a reply and
an assessment delta. The assessor never writes the profile; merging the delta
is the caller's job.
"""

from loguru import logger

from auracoach.coach import config as stage_config
from auracoach.coach.fallbacks import FallbackPolicy
from auracoach.coach.prompts import DIAGNOSTIC_SYSTEM_PROMPT, DIAGNOSTIC_USER_PROMPT, describe_answers, describe_profile
from auracoach.config.settings import Settings
from auracoach.llm.backend import ChatMessage, GenerativeBackend, complete_structured
from auracoach.schemas.assessment import DiagnosticModelOutput, DiagnosticResult
from auracoach.schemas.coaching import CoachingMessage
from auracoach.schemas.profile import UserProfile

# 3 exchanges
MAX_HISTORY_ENTRIES = 6

QUESTION_BANK: dict[str, tuple[str, ...]] = {
    "autonomy": (
        "When you think about this goal, how much of it feels like your own choice?",
        "What would you do differently if nobody else had an opinion about it?",
        "Where do you feel you have the most freedom to decide how you work on this?",
        "Which parts of your day feel like things you 'should' do rather than want to do?",
        "What would make this goal feel more like yours?",
    ),
    "competence": (
        "What is one thing related to this goal that you already do well?",
        "When did you last feel capable and in control of something similar?",
        "Which part of this feels hardest to get right at the moment?",
        "What skill, if it improved a little, would make the biggest difference?",
        "How would you know you were making progress, even a small amount?",
    ),
    "relatedness": (
        "Who in your life knows about this goal?",
        "What kind of support would feel most helpful right now?",
        "When have you felt most connected to people while working toward something?",
        "Is there anyone who shares a similar goal that you could check in with?",
        "How do the people around you usually respond when you try something new?",
    ),
    "goals": (
        "What would achieving this goal change for you?",
        "If you picture yourself three months from now, what would you like to be different?",
        "How would you describe your goal in one specific sentence?",
        "What makes this goal important to you right now?",
        "What is the smallest version of this goal you would still be happy with?",
    ),
    "barriers": (
        "What tends to get in the way when you try to work on this?",
        "When you have stopped in the past, what was happening at the time?",
        "Which obstacle feels most within your control to change?",
        "What would need to be true for the next step to feel easy?",
        "How do you usually talk to yourself when things do not go to plan?",
    ),
}

FALLBACK_RESPONSE = (
    "Thank you for sharing that with me. I'd like to understand a bit more about what matters most to you "
    "right now. What feels like the most important part of this for you?"
)


def generate_question_sequence(topic: str) -> list[str]:
    """Return the five hand-written questions for ``topic``.

    Raises:
        ValueError: If the topic is not one of the known topics
    """
    try:
        return list(QUESTION_BANK[topic.strip().lower()])
    except KeyError:
        raise ValueError(f"Unknown question topic '{topic}'. Known topics: {', '.join(QUESTION_BANK)}") from None


def build_conversation(history: list[str], user_prompt: str) -> list[ChatMessage]:
    """Build chat turns from the last few history entries plus the current prompt.

    History entries alternate user/assistant starting with the user, counted
    within the kept slice.
    """
    recent = history[-MAX_HISTORY_ENTRIES:] if history else []
    turns = [
        ChatMessage(role="user" if index % 2 == 0 else "assistant", content=entry)
        for index, entry in enumerate(recent)
        if entry
    ]
    turns.append(ChatMessage(role="user", content=user_prompt))
    return turns


def _fallback_result() -> DiagnosticResult:
    return DiagnosticResult(
        response=FALLBACK_RESPONSE,
        type="DIAGNOSTIC_QUESTION",
        strategy="MI_EXPLORATION",
        confidence=0.5,
        follow_up_suggestions=list(QUESTION_BANK["goals"][:3]),
    )


class DiagnosticAssessor:
    def __init__(self, backend: GenerativeBackend, config: Settings):
        self._backend = backend
        self._config = config
        self._fallback = FallbackPolicy.uniform("diagnostic", _fallback_result)

    async def assess_user(
        self,
        message: CoachingMessage,
        profile: UserProfile | None = None,
        history: list[str] | None = None,
    ) -> DiagnosticResult:
        """Produce a diagnostic reply and assessment delta.

        Args:
            message: Inbound coaching message
            profile: Stored profile, if any
            history: Prior messages; defaults to ``message.context.previous_messages``

        Returns:
            Diagnostic result. On any backend or parse failure, a fixed empathetic
            reply with confidence 0.5 and an empty assessment.
        """
        if history is None:
            history = list(message.context.previous_messages)
        return await self._fallback.run(self._assess(message, profile, history))

    async def _assess(self, message: CoachingMessage, profile: UserProfile | None, history: list[str]) -> DiagnosticResult:
        user_prompt = DIAGNOSTIC_USER_PROMPT.format(
            message=message.message,
            goal=message.context.current_goal or "Not specified",
            session_type=message.context.session_type.value,
            urgency_level=message.context.urgency_level.value,
            answers=describe_answers(message.context.onboarding_answers),
            profile=describe_profile(profile),
        )
        output = await complete_structured(
            self._backend,
            system_prompt=DIAGNOSTIC_SYSTEM_PROMPT,
            messages=build_conversation(history, user_prompt),
            options=stage_config.DIAGNOSTIC.options(self._config),
            schema=DiagnosticModelOutput,
            context="diagnostic",
            timeout=self._config.llm_timeout_seconds,
        )
        result = output.to_result()
        logger.info(
            "Diagnostic assessment completed",
            response_type=result.type,
            strategy=result.strategy,
            history_entries=min(len(history), MAX_HISTORY_ENTRIES),
        )
        return result

    def generate_question_sequence(self, topic: str) -> list[str]:
        return generate_question_sequence(topic)
