"""Intervention prescriber.

Builds prompts from the profile and assessment, parses the model's answer
into strict schemas and falls back to fixed, schema-valid content whenever
the backend call or the parse fails.
"""

from loguru import logger

from auracoach.coach import config as stage_config
from auracoach.coach.fallbacks import FallbackPolicy
from auracoach.coach.prompts import (
    ADAPT_SYSTEM_PROMPT,
    ADAPT_USER_PROMPT,
    ADAPTED_MICROTASK_SYSTEM_PROMPT,
    ADAPTED_MICROTASK_USER_PROMPT,
    DASHBOARD_TEASER_SYSTEM_PROMPT,
    DASHBOARD_TEASER_USER_PROMPT,
    FIRST_MICROTASK_SYSTEM_PROMPT,
    FIRST_MICROTASK_USER_PROMPT,
    INTERVENTION_SYSTEM_PROMPT,
    INTERVENTION_USER_PROMPT,
    MICRO_HABITS_SYSTEM_PROMPT,
    MICRO_HABITS_USER_PROMPT,
    MOMENTUM_MIRROR_SYSTEM_PROMPT,
    MOMENTUM_MIRROR_USER_PROMPT,
    describe_answers,
    describe_profile,
)
from auracoach.config.settings import Settings
from auracoach.llm.backend import ChatMessage, CompletionOptions, GenerativeBackend, complete_structured
from auracoach.schemas.assessment import DiagnosticResult
from auracoach.schemas.coaching import CoachingMessage, OnboardingAnswers, ReflectionId
from auracoach.schemas.intervention import (
    AdaptDirection,
    DashboardTeaser,
    DashboardTeaserOutput,
    GoalProgress,
    Intervention,
    MicroHabits,
    Microtask,
    MomentumMirror,
    MomentumMirrorOutput,
)
from auracoach.schemas.profile import UserProfile

GENERIC_MICRO_HABITS = (
    "Write down one sentence about why your goal matters to you",
    "Take three slow breaths before starting your next task",
    "Put one item you need for your goal where you will see it tomorrow",
    "Spend two minutes tidying the space where you work on your goal",
    "Note one small win from today before going to bed",
)

_ADAPTED_MICROTASK_FALLBACKS: dict[str, tuple[str, str]] = {
    "easy": (
        "It felt easy, which means you are ready for a slightly bigger step in the same direction.",
        "Repeat your last task and add one more minute to it: {previous_task}",
    ),
    "silly": (
        "Small steps can feel silly, and that is exactly why they work. Linking the step to your reason makes it count.",
        "Do your last task again, then write one sentence about why it matters to you: {previous_task}",
    ),
    "not_done": (
        "No judgment here. Making the step even smaller removes friction and makes starting easier.",
        "Do only the first 30 seconds of your last task: {previous_task}",
    ),
    "something_else": (
        "Life happens. A plan with almost no friction makes it easy to pick things back up.",
        "Choose a two-minute window tomorrow and set a reminder for: {previous_task}",
    ),
}


def _micro_goal_intervention(goal: str | None = None) -> Intervention:
    target = goal or "your goal"
    return Intervention(
        intervention_type="goal_setting",
        strategy="GST_MICRO_GOAL",
        content=(
            f"Let's make {target} feel lighter by starting with the smallest possible action. "
            "Pick one thing you can finish in the next 24 hours, even if it only takes a couple of minutes."
        ),
        action_steps=[
            "Choose the smallest action that moves you forward",
            "Decide exactly when in the next 24 hours you will do it",
            "Do it, then note how it felt",
        ],
        timeframe="Next 24 hours",
        success_metrics="You completed one small action and noted how it felt",
        obstacles=["Waiting until you feel ready", "Making the first step too big"],
        adaptations=["If the action feels big, cut it in half until it feels easy"],
        rationale="Small, immediate wins build confidence and momentum, which makes the next step easier.",
        confidence=0.8,
    )


def _fallback_first_microtask(answers: OnboardingAnswers) -> Microtask:
    goal = answers.final_focus or "your goal"
    if answers.mindset == "growth" and answers.locus == "internal":
        return Microtask(
            rationale="You believe abilities grow with effort and you like to take charge, so choosing your own first step plays to your strengths.",
            task=f"Write down the smallest first step toward {goal} and pick a time today to do it.",
        )
    if answers.locus == "external":
        return Microtask(
            rationale="Shaping your surroundings lets the environment do some of the work, which makes the next step happen more naturally.",
            task=f"Put one thing you need for {goal} somewhere you will see it tomorrow morning.",
        )
    return Microtask(
        rationale="Deciding when you will act removes a decision later and makes starting easier.",
        task=f"Decide the exact time today when you will spend two minutes on {goal}.",
    )


def _fallback_adapted_microtask(reflection_id: str, previous_task: str) -> Microtask:
    rationale, task = _ADAPTED_MICROTASK_FALLBACKS.get(reflection_id, _ADAPTED_MICROTASK_FALLBACKS["something_else"])
    return Microtask(rationale=rationale, task=task.format(previous_task=previous_task))


def _fallback_momentum_mirror(user_id: str) -> MomentumMirror:
    return MomentumMirror(
        title="Every Small Step You Take Is Building Real Momentum",
        body="You showed up and reflected honestly, which is how lasting change starts. Your next step is ready whenever you are.",
        user_id=user_id,
    )


def _fallback_dashboard_teaser(user_id: str, goal: str | None = None) -> DashboardTeaser:
    target = goal or "your goal"
    return DashboardTeaser(
        teaser=f"Your dashboard will track every small win toward {target}, so you can watch your momentum build week by week.",
        user_id=user_id,
    )


def _goal_of(answers: OnboardingAnswers | None) -> str | None:
    return answers.final_focus if answers else None


def describe_goals(goals: list[GoalProgress]) -> str:
    if not goals:
        return "No active goals recorded."
    return "\n".join(f"- {goal.title} ({goal.progress:.0f}% complete)" for goal in goals)


class InterventionPrescriber:
    """Prescribes, adapts and sizes coaching actions.

    Category selection is left to the model; this class owns prompt
    construction, strict parsing and the fallbacks.
    """

    def __init__(self, backend: GenerativeBackend, config: Settings):
        self._backend = backend
        self._config = config
        self._prescribe_fallback = FallbackPolicy.uniform("intervention", _micro_goal_intervention)
        self._adapt_fallback = FallbackPolicy.uniform("intervention.adapt", lambda previous: previous)
        self._habits_fallback = FallbackPolicy.uniform("intervention.micro_habits", lambda: list(GENERIC_MICRO_HABITS))
        self._first_task_fallback = FallbackPolicy.uniform("intervention.first_microtask", _fallback_first_microtask)
        self._adapted_task_fallback = FallbackPolicy.uniform("reflection.adapted_microtask", _fallback_adapted_microtask)
        self._mirror_fallback = FallbackPolicy.uniform("reflection.momentum_mirror", _fallback_momentum_mirror)
        self._teaser_fallback = FallbackPolicy.uniform("reflection.dashboard_teaser", _fallback_dashboard_teaser)

    async def _complete(self, system_prompt: str, user_prompt: str, options: CompletionOptions, schema, context: str):
        return await complete_structured(
            self._backend,
            system_prompt=system_prompt,
            messages=[ChatMessage(role="user", content=user_prompt)],
            options=options,
            schema=schema,
            context=context,
            timeout=self._config.llm_timeout_seconds,
        )

    async def prescribe_intervention(
        self,
        message: CoachingMessage,
        profile: UserProfile | None,
        assessment: DiagnosticResult | None,
        goals: list[GoalProgress] | None = None,
    ) -> Intervention:
        """Prescribe one intervention for the user's current message.

        Args:
            message: Inbound coaching message
            profile: Stored profile, if any
            assessment: Diagnostic result from the same turn
            goals: Active goals with progress; defaults to the context's current goal

        Returns:
            The prescribed intervention, or the 24-hour micro-goal intervention
            when the backend call or parse fails.
        """
        if goals is None:
            goals = [GoalProgress(title=message.context.current_goal)] if message.context.current_goal else []
        goal = goals[0].title if goals else None
        return await self._prescribe_fallback.run(self._prescribe(message, profile, assessment, goals), goal=goal)

    async def _prescribe(
        self,
        message: CoachingMessage,
        profile: UserProfile | None,
        assessment: DiagnosticResult | None,
        goals: list[GoalProgress],
    ) -> Intervention:
        assessment_text = (
            assessment.model_dump_json(by_alias=True, exclude_none=True, indent=2)
            if assessment is not None
            else "No assessment available."
        )
        intervention = await self._complete(
            INTERVENTION_SYSTEM_PROMPT,
            INTERVENTION_USER_PROMPT.format(
                message=message.message,
                goals=describe_goals(goals),
                profile=describe_profile(profile),
                assessment=assessment_text,
            ),
            stage_config.INTERVENTION.options(self._config),
            Intervention,
            "intervention",
        )
        logger.info(
            "Intervention prescribed",
            intervention_type=intervention.intervention_type,
            strategy=intervention.strategy,
            steps=len(intervention.action_steps),
        )
        return intervention

    async def adapt_intervention(
        self,
        previous: Intervention,
        feedback: str,
        direction: AdaptDirection = "different_approach",
    ) -> Intervention:
        """Re-prompt with the original intervention, feedback and a direction.

        Returns ``previous`` itself when the backend call or parse fails.
        """
        return await self._adapt_fallback.run(self._adapt(previous, feedback, direction), previous=previous)

    async def _adapt(self, previous: Intervention, feedback: str, direction: AdaptDirection) -> Intervention:
        adapted = await self._complete(
            ADAPT_SYSTEM_PROMPT,
            ADAPT_USER_PROMPT.format(
                previous=previous.model_dump_json(by_alias=True, indent=2),
                feedback=feedback,
                direction=direction,
            ),
            stage_config.INTERVENTION.options(self._config),
            Intervention,
            "intervention adaptation",
        )
        logger.info("Intervention adapted", direction=direction, strategy=adapted.strategy)
        return adapted

    async def generate_micro_habits(self, goal: str, profile: UserProfile | None) -> list[str]:
        """Return exactly five sub-two-minute habits for ``goal``."""
        return await self._habits_fallback.run(self._micro_habits(goal, profile))

    async def _micro_habits(self, goal: str, profile: UserProfile | None) -> list[str]:
        result = await self._complete(
            MICRO_HABITS_SYSTEM_PROMPT,
            MICRO_HABITS_USER_PROMPT.format(goal=goal, profile=describe_profile(profile)),
            stage_config.INTERVENTION.options(self._config),
            MicroHabits,
            "micro habits",
        )
        return result.habits

    async def generate_first_microtask(self, answers: OnboardingAnswers, profile: UserProfile | None) -> Microtask:
        return await self._first_task_fallback.run(self._first_microtask(answers, profile), answers=answers)

    async def _first_microtask(self, answers: OnboardingAnswers, profile: UserProfile | None) -> Microtask:
        return await self._complete(
            FIRST_MICROTASK_SYSTEM_PROMPT,
            FIRST_MICROTASK_USER_PROMPT.format(
                goal=answers.final_focus or "Not specified",
                answers=describe_answers(answers),
                profile=describe_profile(profile),
            ),
            stage_config.INTERVENTION.options(self._config),
            Microtask,
            "first microtask",
        )

    async def generate_adapted_microtask(
        self,
        previous_task: str,
        reflection_id: ReflectionId,
        reflection_text: str,
        profile: UserProfile | None,
    ) -> Microtask:
        """Next microtask after a reflection; the fallback is keyed by ``reflection_id``."""
        return await self._adapted_task_fallback.run(
            self._adapted_microtask(previous_task, reflection_id, reflection_text, profile),
            reflection_id=reflection_id,
            previous_task=previous_task,
        )

    async def _adapted_microtask(
        self,
        previous_task: str,
        reflection_id: ReflectionId,
        reflection_text: str,
        profile: UserProfile | None,
    ) -> Microtask:
        return await self._complete(
            ADAPTED_MICROTASK_SYSTEM_PROMPT,
            ADAPTED_MICROTASK_USER_PROMPT.format(
                previous_task=previous_task,
                reflection_id=reflection_id,
                reflection_text=reflection_text,
                profile=describe_profile(profile),
            ),
            stage_config.REFLECTION.options(self._config),
            Microtask,
            "adapted microtask",
        )

    async def generate_momentum_mirror(
        self,
        reflection_id: ReflectionId,
        reflection_text: str,
        profile: UserProfile | None,
        user_id: str,
        answers: OnboardingAnswers | None = None,
    ) -> MomentumMirror:
        return await self._mirror_fallback.run(
            self._momentum_mirror(reflection_id, reflection_text, profile, user_id, answers),
            user_id=user_id,
        )

    async def _momentum_mirror(
        self,
        reflection_id: ReflectionId,
        reflection_text: str,
        profile: UserProfile | None,
        user_id: str,
        answers: OnboardingAnswers | None,
    ) -> MomentumMirror:
        output = await self._complete(
            MOMENTUM_MIRROR_SYSTEM_PROMPT,
            MOMENTUM_MIRROR_USER_PROMPT.format(
                goal=_goal_of(answers) or "personal growth and improvement",
                reflection_id=reflection_id,
                reflection_text=reflection_text,
                answers=describe_answers(answers),
                profile=describe_profile(profile),
            ),
            stage_config.REFLECTION.options(self._config),
            MomentumMirrorOutput,
            "momentum mirror",
        )
        return MomentumMirror(title=output.title, body=output.body, user_id=user_id)

    async def generate_dashboard_teaser(
        self,
        profile: UserProfile | None,
        user_id: str,
        answers: OnboardingAnswers | None = None,
    ) -> DashboardTeaser:
        return await self._teaser_fallback.run(
            self._dashboard_teaser(profile, user_id, answers),
            user_id=user_id,
            goal=_goal_of(answers),
        )

    async def _dashboard_teaser(
        self,
        profile: UserProfile | None,
        user_id: str,
        answers: OnboardingAnswers | None,
    ) -> DashboardTeaser:
        output = await self._complete(
            DASHBOARD_TEASER_SYSTEM_PROMPT,
            DASHBOARD_TEASER_USER_PROMPT.format(
                goal=_goal_of(answers) or "personal growth and achievement",
                answers=describe_answers(answers),
                profile=describe_profile(profile),
            ),
            stage_config.REFLECTION.options(self._config),
            DashboardTeaserOutput,
            "dashboard teaser",
        )
        return DashboardTeaser(teaser=output.teaser, user_id=user_id)
