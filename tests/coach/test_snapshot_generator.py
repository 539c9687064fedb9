"""Tests for the onboarding snapshot generator."""

import itertools

import pytest

from auracoach.coach.snapshot import ARCHETYPES, DEFAULT_USER_GOAL, generate_snapshot
from auracoach.schemas.coaching import OnboardingAnswers
from auracoach.schemas.profile import PsychologicalProfile, UserProfile
from auracoach.schemas.snapshot import Archetype, find_judgmental_terms


def test_developed_primary_driver_promotion_is_visionary_achiever(onboarding_answers):
    snapshot = generate_snapshot(OnboardingAnswers.model_validate(onboarding_answers))

    assert snapshot.archetype == Archetype.VISIONARY_ACHIEVER
    assert snapshot.user_goal == "career growth"
    assert snapshot.narrative_summary.endswith("career growth")
    assert [insight.type for insight in snapshot.insights] == ["spectrum", "balance", "ring"]
    assert [insight.user_score for insight in snapshot.insights] == [4.2, 4.5, 4.0]


def test_same_answers_give_identical_snapshots(onboarding_answers):
    answers = OnboardingAnswers.model_validate(onboarding_answers)
    assert generate_snapshot(answers) == generate_snapshot(answers)


@pytest.mark.parametrize(
    ("mindset", "locus", "focus"),
    list(itertools.product(["growth", "fixed"], ["internal", "external"], ["promotion", "prevention"])),
)
def test_every_combination_maps_to_its_archetype(mindset, locus, focus):
    answers = OnboardingAnswers(mindset=mindset, locus=locus, regulatory_focus=focus, final_focus="sleeping better")
    snapshot = generate_snapshot(answers)

    assert snapshot.archetype == ARCHETYPES[(mindset, locus, focus)]
    assert all(1 <= insight.user_score <= 5 for insight in snapshot.insights)
    assert find_judgmental_terms(snapshot.narrative_summary) == []
    for insight in snapshot.insights:
        assert find_judgmental_terms(insight.description) == []


def test_all_eight_archetypes_are_reachable():
    assert set(ARCHETYPES.values()) == set(Archetype)


def test_missing_answers_use_default_archetype_and_goal():
    snapshot = generate_snapshot(OnboardingAnswers())

    assert snapshot.archetype == Archetype.THOUGHTFUL_PLANNER
    assert snapshot.user_goal == DEFAULT_USER_GOAL
    assert snapshot.insights[2].user_score == 2.5


def test_stored_profile_fills_unanswered_traits():
    profile = UserProfile(
        id="user-1",
        psychological_profile=PsychologicalProfile(mindset="growth", locus="internal", regulatory_focus="prevention"),
    )
    answers = OnboardingAnswers(regulatory_focus="promotion")

    snapshot = generate_snapshot(answers, profile)

    assert snapshot.archetype == Archetype.VISIONARY_ACHIEVER


def test_questionnaire_spellings_are_normalized():
    answers = OnboardingAnswers.model_validate({"mindset": "stable", "agency": "external_factors", "goal": "run a 5k"})

    assert answers.mindset == "fixed"
    assert answers.locus == "external"
    assert answers.final_focus == "run a 5k"
