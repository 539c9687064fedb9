"""Tests for the intervention prescriber and its fallbacks."""

import json

import pytest

from auracoach.coach.interventions import GENERIC_MICRO_HABITS, InterventionPrescriber
from auracoach.llm.backend import GenerativeBackendError
from auracoach.schemas.coaching import CoachingMessage, MessageContext, OnboardingAnswers
from auracoach.schemas.intervention import Intervention

INTERVENTION_REPLY = {
    "interventionType": "behavioral",
    "strategy": "IMPLEMENTATION_INTENTION",
    "content": "Pair your workout with your morning coffee.",
    "actionSteps": ["Lay out your shoes tonight", "  ", "Start with five minutes"],
    "timeframe": "This week",
    "successMetrics": "Three short sessions completed",
    "obstacles": ["Busy mornings"],
    "adaptations": ["Move it to lunchtime"],
    "rationale": "Anchoring to an existing habit lowers friction.",
    "confidence": 0.85,
}


@pytest.fixture
def previous() -> Intervention:
    return Intervention.model_validate(INTERVENTION_REPLY)


@pytest.fixture
def failing_prescriber(config, make_backend) -> InterventionPrescriber:
    return InterventionPrescriber(make_backend(error=GenerativeBackendError("down")), config)


@pytest.mark.asyncio
async def test_prescribe_intervention_parses_model_output(config, make_backend):
    backend = make_backend(replies=[json.dumps(INTERVENTION_REPLY)])
    prescriber = InterventionPrescriber(backend, config)
    message = CoachingMessage(message="I never find time", user_id="user-1")

    intervention = await prescriber.prescribe_intervention(message, None, None)

    assert intervention.intervention_type == "behavioral"
    assert intervention.action_steps == ["Lay out your shoes tonight", "Start with five minutes"]
    _, _, options = backend.calls[0]
    assert (options.temperature, options.max_tokens) == (0.4, 1000)


@pytest.mark.asyncio
async def test_prescribe_failure_returns_micro_goal(failing_prescriber):
    message = CoachingMessage(
        message="I never find time",
        user_id="user-1",
        context=MessageContext(current_goal="read more books"),
    )

    intervention = await failing_prescriber.prescribe_intervention(message, None, None)

    assert intervention.strategy == "GST_MICRO_GOAL"
    assert intervention.timeframe == "Next 24 hours"
    assert "read more books" in intervention.content


@pytest.mark.asyncio
async def test_adapt_failure_returns_original_object(failing_prescriber, previous):
    adapted = await failing_prescriber.adapt_intervention(previous, "Too hard for me", "easier")

    assert adapted is previous


@pytest.mark.asyncio
async def test_adapt_sends_direction_and_feedback(config, make_backend, previous):
    easier = {**INTERVENTION_REPLY, "content": "Start with two minutes.", "strategy": "SMALLER_STEP"}
    backend = make_backend(replies=[json.dumps(easier)])
    prescriber = InterventionPrescriber(backend, config)

    adapted = await prescriber.adapt_intervention(previous, "Too hard for me", "easier")

    assert adapted.strategy == "SMALLER_STEP"
    _, turns, _ = backend.calls[0]
    assert "easier" in turns[-1].content
    assert "Too hard for me" in turns[-1].content


@pytest.mark.asyncio
async def test_micro_habits_require_exactly_five(config, make_backend):
    backend = make_backend(replies=[json.dumps({"habits": ["one", "two", "three"]})])
    prescriber = InterventionPrescriber(backend, config)

    habits = await prescriber.generate_micro_habits("sleep earlier", None)

    assert habits == list(GENERIC_MICRO_HABITS)


@pytest.mark.asyncio
async def test_micro_habits_from_model(config, make_backend):
    reply = {"habits": ["a", "b", "c", "d", "e"]}
    prescriber = InterventionPrescriber(make_backend(replies=[json.dumps(reply)]), config)

    assert await prescriber.generate_micro_habits("sleep earlier", None) == ["a", "b", "c", "d", "e"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("answers", "expected"),
    [
        ({"mindset": "growth", "locus": "internal", "final_focus": "learn Spanish"}, "smallest first step"),
        ({"mindset": "fixed", "locus": "external", "final_focus": "learn Spanish"}, "somewhere you will see it"),
        ({"final_focus": "learn Spanish"}, "exact time"),
    ],
)
async def test_first_microtask_fallback_follows_traits(failing_prescriber, answers, expected):
    task = await failing_prescriber.generate_first_microtask(OnboardingAnswers(**answers), None)

    assert expected in task.task
    assert "learn Spanish" in task.task


@pytest.mark.asyncio
async def test_adapted_microtask_fallback_keeps_previous_task(failing_prescriber):
    task = await failing_prescriber.generate_adapted_microtask("Walk for 5 minutes", "not_done", "I forgot", None)

    assert task.task.endswith("Walk for 5 minutes")
    assert "30 seconds" in task.task


@pytest.mark.asyncio
async def test_reflection_artifact_fallbacks_carry_user_id(failing_prescriber):
    mirror = await failing_prescriber.generate_momentum_mirror("easy", "It went well", None, "user-9")
    teaser = await failing_prescriber.generate_dashboard_teaser(
        None, "user-9", OnboardingAnswers(final_focus="run a 10k")
    )

    assert mirror.user_id == "user-9"
    assert teaser.user_id == "user-9"
    assert "run a 10k" in teaser.teaser
