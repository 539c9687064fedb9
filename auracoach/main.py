import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from auracoach import __version__
from auracoach.api.coaching import router as coaching_router
from auracoach.api.errors import register_exception_handlers
from auracoach.api.users import router as users_router
from auracoach.config.settings import Settings, settings
from auracoach.core.logger import setup_logger
from auracoach.services import CoachingServices


def create_app(services: CoachingServices | None = None, config: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        services: Pre-built services (tests); when None they are built from
            settings in the lifespan and closed on shutdown
        config: Settings to use; defaults to the module settings

    Returns:
        Configured FastAPI application
    """
    config = services.settings if services is not None else (config or settings)
    setup_logger(level=config.log_level, log_file=config.log_file, serialize=config.log_json)

    if not config.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set. Generative coaching stages will use their fallbacks.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = CoachingServices.build(config)
            logger.info("Coaching services started", kv_backend=config.kv_backend, provider=config.llm_provider)
        yield
        if owned:
            await app.state.services.store.close()
            logger.info("Coaching services stopped")

    app = FastAPI(title="Aura Coach", version=__version__, lifespan=lifespan)
    if services is not None:
        app.state.services = services

    register_exception_handlers(app)
    app.include_router(coaching_router)
    app.include_router(users_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Tag each request with an id and log it."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        with logger.contextualize(request_id=request_id):
            logger.debug(f"Request: {request.method} {request.url.path}")
            response = await call_next(request)
            logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        response.headers["X-Request-ID"] = request_id
        return response

    logger.info("FastAPI application initialized")
    return app


app = create_app()
