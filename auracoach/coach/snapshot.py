"""Onboarding snapshot generator.

Pure and synchronous: the same answers always produce the same snapshot. No
generative backend is involved.
"""

from auracoach.schemas.coaching import OnboardingAnswers
from auracoach.schemas.profile import UserProfile
from auracoach.schemas.snapshot import Archetype, Insight, SnapshotData

DEFAULT_USER_GOAL = "improving your overall well-being"

ARCHETYPES: dict[tuple[str, str, str], Archetype] = {
    ("growth", "internal", "promotion"): Archetype.VISIONARY_ACHIEVER,
    ("growth", "internal", "prevention"): Archetype.STEADY_BUILDER,
    ("growth", "external", "promotion"): Archetype.ADAPTIVE_OPTIMIST,
    ("growth", "external", "prevention"): Archetype.COMPASSIONATE_ACHIEVER,
    ("fixed", "internal", "promotion"): Archetype.DETERMINED_SPECIALIST,
    ("fixed", "internal", "prevention"): Archetype.RELIABLE_EXECUTOR,
    ("fixed", "external", "promotion"): Archetype.OPPORTUNISTIC_REALIST,
    ("fixed", "external", "prevention"): Archetype.THOUGHTFUL_PLANNER,
}

# Each template ends with the user's goal, verbatim
NARRATIVES: dict[Archetype, str] = {
    Archetype.VISIONARY_ACHIEVER: (
        "You're a Visionary Achiever. You believe you can grow, and you naturally take ownership of moving forward. "
        "Your eye for new possibilities gives that drive a clear direction, so we'll build a plan that is both ambitious "
        "and sustainable. Right now, your focus is on {goal}"
    ),
    Archetype.STEADY_BUILDER: (
        "You're a Steady Builder. You pair a belief in growth with a strong sense of personal responsibility, "
        "which makes you thorough and dependable. We'll use that methodical approach to make lasting progress on {goal}"
    ),
    Archetype.ADAPTIVE_OPTIMIST: (
        "You're an Adaptive Optimist. You believe in growth and you read the world around you closely, which helps you "
        "spot openings others miss. We'll channel that adaptability into consistent progress on {goal}"
    ),
    Archetype.COMPASSIONATE_ACHIEVER: (
        "You're a Compassionate Achiever. You believe people can grow, and you pay careful attention to the people and "
        "circumstances around you. We'll make room for your own progress alongside that care as you work on {goal}"
    ),
    Archetype.DETERMINED_SPECIALIST: (
        "You're a Determined Specialist. You take charge of your own results and you are motivated by what you can gain, "
        "which makes you focused on the areas that matter to you. We'll point that focus at {goal}"
    ),
    Archetype.RELIABLE_EXECUTOR: (
        "You're a Reliable Executor. You take ownership of your commitments and you value getting things right, "
        "so people can count on you. We'll streamline how you work so your effort goes straight into {goal}"
    ),
    Archetype.OPPORTUNISTIC_REALIST: (
        "You're an Opportunistic Realist. You are practical about your circumstances and quick to act when a good "
        "opening appears. We'll help you find and use the right conditions to move forward on {goal}"
    ),
    Archetype.THOUGHTFUL_PLANNER: (
        "You're a Thoughtful Planner. You approach challenges with care and consideration before you act. "
        "We'll turn that careful thinking into a clear path forward for {goal}"
    ),
}


def _resolve_traits(answers: OnboardingAnswers, profile: UserProfile | None) -> tuple[str | None, str | None, str | None]:
    """Answers win; a stored psychological profile fills any gaps."""
    stored = profile.psychological_profile if profile is not None else None
    mindset = answers.mindset or (stored.mindset if stored else None)
    locus = answers.locus or (stored.locus if stored else None)
    focus = answers.regulatory_focus or (stored.regulatory_focus if stored else None)
    return mindset, locus, focus


def determine_archetype(mindset: str | None, locus: str | None, regulatory_focus: str | None) -> Archetype:
    return ARCHETYPES.get((mindset, locus, regulatory_focus), Archetype.THOUGHTFUL_PLANNER)


def _agency_insight(locus: str | None) -> Insight:
    if locus == "internal":
        score = 4.2
        description = (
            "Your natural focus is on what you can do yourself. "
            "That sense of personal action is a solid foundation to build every step on."
        )
    else:
        score = 2.3
        description = (
            "Right now you tend to pay close attention to the circumstances around you. "
            "This is a common and understandable pattern, and it provides a clear starting point "
            "for growing your sense of personal agency."
        )
    return Insight(
        type="spectrum",
        title="Personal Agency",
        description=description,
        user_score=score,
        min_label="Focus on Circumstance",
        max_label="Focus on Action",
    )


def _mindset_insight(mindset: str | None) -> Insight:
    if mindset == "growth":
        score = 4.5
        description = (
            "You believe abilities can be developed with effort. "
            "That belief is a real asset and it will anchor the strategies we build together."
        )
    else:
        score = 2.0
        description = (
            "Your current belief is that abilities are mostly set. "
            "Beliefs like this can shift with practice, so we'll use strategies that gradually "
            "strengthen a growth-oriented view."
        )
    return Insight(
        type="balance",
        title="Growth Mindset",
        description=description,
        user_score=score,
        left_label="Growth Belief",
        right_label="Current Fixed Belief",
    )


def _orientation_insight(regulatory_focus: str | None) -> Insight:
    if regulatory_focus == "promotion":
        score = 4.0
        description = (
            "You lean toward pursuing new opportunities and gains, "
            "which brings energy and ambition to how you work toward your goals."
        )
    elif regulatory_focus == "prevention":
        score = 2.5
        description = (
            "You lean toward stability and careful preparation, "
            "which brings thoroughness and foresight to how you work toward your goals."
        )
    else:
        score = 2.5
        description = (
            "Your focus sits between chasing opportunities and protecting what matters, "
            "so you can draw on both energy and careful planning."
        )
    return Insight(
        type="ring",
        title="Achievement Orientation",
        description=description,
        user_score=score,
        left_label="Promotion Focus",
        right_label="Prevention Focus",
    )


def generate_snapshot(answers: OnboardingAnswers, profile: UserProfile | None = None) -> SnapshotData:
    """Map completed onboarding answers to an archetype, three insights and a narrative.

    Args:
        answers: Onboarding questionnaire answers; missing traits are allowed
        profile: Stored profile; its psychological traits fill unanswered questions

    Returns:
        Snapshot with exactly one spectrum, one balance and one ring insight
    """
    mindset, locus, focus = _resolve_traits(answers, profile)
    archetype = determine_archetype(mindset, locus, focus)
    user_goal = (answers.final_focus or "").strip() or DEFAULT_USER_GOAL

    return SnapshotData(
        archetype=archetype,
        insights=(_agency_insight(locus), _mindset_insight(mindset), _orientation_insight(focus)),
        user_goal=user_goal,
        narrative_summary=NARRATIVES[archetype].format(goal=user_goal),
    )
