"""Tests for the diagnostic assessor and question bank."""

import json

import pytest

from auracoach.coach.diagnostic import (
    FALLBACK_RESPONSE,
    MAX_HISTORY_ENTRIES,
    QUESTION_BANK,
    DiagnosticAssessor,
    build_conversation,
    generate_question_sequence,
)
from auracoach.llm.backend import GenerativeBackendError
from auracoach.schemas.coaching import CoachingMessage, MessageContext


@pytest.fixture
def message() -> CoachingMessage:
    return CoachingMessage(
        message="I keep putting off my workouts",
        user_id="user-1",
        context=MessageContext(current_goal="exercise three times a week"),
    )


@pytest.mark.asyncio
async def test_assess_user_parses_model_output(config, make_backend, message):
    reply = {
        "response": "What usually happens right before you skip a workout?",
        "type": "DIAGNOSTIC_QUESTION",
        "strategy": "sdt_competence",
        "confidence": 0.7,
        "sdtScores": {"autonomy": 4, "competence": 2},
        "changeReadiness": "preparation",
        "followUpSuggestions": ["What time of day suits you?", " ", "Who could join you?"],
    }
    backend = make_backend(replies=[f"```json\n{json.dumps(reply)}\n```"])
    assessor = DiagnosticAssessor(backend, config)

    result = await assessor.assess_user(message)

    assert result.strategy == "SDT_COMPETENCE"
    assert result.confidence == 0.7
    assert result.assessment_insights.motivational_profile.autonomy == 4
    assert result.assessment_insights.motivational_profile.relatedness is None
    assert result.assessment_insights.change_readiness == "preparation"
    assert result.follow_up_suggestions == ["What time of day suits you?", "Who could join you?"]


@pytest.mark.asyncio
async def test_backend_error_returns_fixed_reply(config, make_backend, message):
    assessor = DiagnosticAssessor(make_backend(error=GenerativeBackendError("down")), config)

    result = await assessor.assess_user(message)

    assert result.response == FALLBACK_RESPONSE
    assert result.confidence == 0.5
    assert result.assessment_insights.is_empty()


@pytest.mark.asyncio
async def test_unknown_strategy_uses_fallback(config, make_backend, message):
    backend = make_backend(replies=[json.dumps({"response": "Tell me more.", "strategy": "HYPNOSIS"})])
    assessor = DiagnosticAssessor(backend, config)

    result = await assessor.assess_user(message)

    assert result.confidence == 0.5


@pytest.mark.asyncio
async def test_history_is_sent_as_alternating_turns(config, make_backend, message):
    backend = make_backend(replies=[json.dumps({"response": "Go on.", "strategy": "MI_EXPLORATION"})])
    assessor = DiagnosticAssessor(backend, config)
    history = [f"turn {index}" for index in range(10)]

    await assessor.assess_user(message, history=history)

    _, turns, options = backend.calls[0]
    assert len(turns) == MAX_HISTORY_ENTRIES + 1
    assert turns[0].content == "turn 4"
    assert [turn.role for turn in turns[:2]] == ["user", "assistant"]
    assert turns[-1].role == "user"
    assert "I keep putting off my workouts" in turns[-1].content
    assert options.temperature == 0.3
    assert options.max_tokens == 800


def test_build_conversation_without_history():
    turns = build_conversation([], "hello")
    assert [(turn.role, turn.content) for turn in turns] == [("user", "hello")]


@pytest.mark.parametrize("topic", sorted(QUESTION_BANK))
def test_question_sequence_has_five_questions(topic):
    questions = generate_question_sequence(topic)
    assert len(questions) == 5
    assert all(question.endswith("?") for question in questions)


def test_question_sequence_ignores_case_and_whitespace():
    assert generate_question_sequence(" Goals ") == list(QUESTION_BANK["goals"])


def test_unknown_topic_raises():
    with pytest.raises(ValueError, match="Unknown question topic"):
        generate_question_sequence("astrology")


@pytest.mark.asyncio
async def test_slow_backend_is_cut_off_with_fixed_reply(config, make_backend, message):
    reply = json.dumps({"response": "Too late to matter", "strategy": "MI_EXPLORATION"})
    backend = make_backend(replies=[reply], delay=0.5)
    assessor = DiagnosticAssessor(backend, config.model_copy(update={"llm_timeout_seconds": 0.01}))

    result = await assessor.assess_user(message)

    assert result.response == FALLBACK_RESPONSE
    assert result.confidence == 0.5


@pytest.mark.asyncio
async def test_assess_user_parses_scores_and_drops_unknown_risk_factors(config, make_backend, message):
    reply = {
        "response": "How do you usually explain a missed workout to yourself?",
        "strategy": "ET_ASSESSMENT",
        "mindsetScore": 2,
        "locusScore": 4.5,
        "riskFactors": {"burnout": 0.3, "boredom": 0.8},
    }
    assessor = DiagnosticAssessor(make_backend(replies=[json.dumps(reply)]), config)

    insights = (await assessor.assess_user(message)).assessment_insights

    assert insights.mindset_score == 2
    assert insights.locus_score == 4.5
    assert insights.regulatory_focus_score is None
    assert insights.risk_factors == {"burnout": 0.3}
