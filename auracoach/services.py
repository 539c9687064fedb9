"""Service container wiring the coaching components together.

Created once per process by the app lifespan, or built by tests with a fake
backend and an in-memory store.
"""

from dataclasses import dataclass

from auracoach.coach.diagnostic import DiagnosticAssessor
from auracoach.coach.interventions import InterventionPrescriber
from auracoach.coach.pipeline import CoachingPipeline
from auracoach.coach.router import SessionRouter
from auracoach.coach.safety import SafetyScreen
from auracoach.config.settings import Settings
from auracoach.core.entitlement import AllowAllChecker, EntitlementChecker, SubscriptionClaimChecker
from auracoach.core.rate_limit import RateLimiter
from auracoach.llm.backend import GenerativeBackend, PydanticAIBackend
from auracoach.storage.history import HistoryRecorder
from auracoach.storage.kv import KeyValueStore, build_store
from auracoach.storage.profiles import ProfileRepository


@dataclass
class CoachingServices:
    settings: Settings
    backend: GenerativeBackend
    store: KeyValueStore
    profiles: ProfileRepository
    history: HistoryRecorder
    safety: SafetyScreen
    assessor: DiagnosticAssessor
    prescriber: InterventionPrescriber
    router: SessionRouter
    pipeline: CoachingPipeline
    coaching_limiter: RateLimiter
    default_limiter: RateLimiter
    entitlement: EntitlementChecker

    @classmethod
    def build(
        cls,
        config: Settings,
        backend: GenerativeBackend | None = None,
        store: KeyValueStore | None = None,
        entitlement: EntitlementChecker | None = None,
    ) -> "CoachingServices":
        backend = backend or PydanticAIBackend(provider=config.llm_provider, api_key=config.openai_api_key)
        store = store or build_store(config)
        if entitlement is None:
            entitlement = SubscriptionClaimChecker() if config.require_entitlement else AllowAllChecker()

        profiles = ProfileRepository(store)
        safety = SafetyScreen(backend, config)
        assessor = DiagnosticAssessor(backend, config)
        prescriber = InterventionPrescriber(backend, config)
        router = SessionRouter(store, profiles, assessor, prescriber)

        return cls(
            settings=config,
            backend=backend,
            store=store,
            profiles=profiles,
            history=HistoryRecorder(store),
            safety=safety,
            assessor=assessor,
            prescriber=prescriber,
            router=router,
            pipeline=CoachingPipeline(safety, profiles, router),
            coaching_limiter=RateLimiter(
                store,
                prefix="coaching",
                limit=config.coaching_rate_limit,
                window_seconds=config.coaching_rate_window_seconds,
            ),
            default_limiter=RateLimiter(
                store,
                prefix="api",
                limit=config.default_rate_limit,
                window_seconds=config.default_rate_window_seconds,
            ),
            entitlement=entitlement,
        )
