"""Coaching API endpoints."""

import time

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from loguru import logger

from auracoach.api.dependencies import (
    coaching_rate_limit,
    default_rate_limit,
    get_current_user,
    get_request_id,
    get_services,
)
from auracoach.coach.diagnostic import generate_question_sequence
from auracoach.coach.pipeline import crisis_response, elapsed_ms, to_response_data
from auracoach.core.auth_jwt import TokenUser
from auracoach.core.entitlement import require_entitlement
from auracoach.core.errors import NotFoundError
from auracoach.schemas.coaching import CoachingMessage, FirstStepRequest, MessageContext, SessionType
from auracoach.schemas.envelope import ApiResponse
from auracoach.schemas.intervention import AdaptInterventionRequest
from auracoach.services import CoachingServices

router = APIRouter(prefix="/coaching", tags=["coaching"])


@router.post("/message", dependencies=[Depends(coaching_rate_limit)])
async def coaching_message(
    body: CoachingMessage,
    request: Request,
    background_tasks: BackgroundTasks,
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    """Handle one coaching turn.

    Gating order: rate limit, authentication, entitlement, then the pipeline
    (safety screen, profile fetch, session router). The verified user id
    replaces any ``userId`` in the body.
    """
    await require_entitlement(services.entitlement, user, body.session_type)

    if body.user_id != user.id:
        logger.debug("Body userId replaced by token subject", user_id=user.id)
    message = body.model_copy(update={"user_id": user.id})

    logger.info(
        "Coaching message received",
        user_id=user.id,
        session_type=message.session_type.value,
        message_length=len(message.message),
    )
    data = await services.pipeline.handle(message, email=user.email)

    background_tasks.add_task(
        services.history.record,
        user.id,
        message.session_id,
        message.session_type.value,
        message.message,
        data.model_dump(mode="json", by_alias=True),
    )
    return ApiResponse.ok(data, request_id=get_request_id(request))


@router.post("/first-step", dependencies=[Depends(coaching_rate_limit)])
async def first_step(
    body: FirstStepRequest,
    request: Request,
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    """Generate the first microtask after onboarding and store it as the current task."""
    started = time.perf_counter()
    profile = await services.profiles.get_or_default(user.id, user.email)
    result = await services.router.first_step(user.id, body.onboarding_answers, profile)
    return ApiResponse.ok(to_response_data(result, elapsed_ms(started)), request_id=get_request_id(request))


@router.post("/interventions/adapt", dependencies=[Depends(coaching_rate_limit)])
async def adapt_intervention(
    body: AdaptInterventionRequest,
    request: Request,
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    """Adapt a previous intervention from user feedback.

    The feedback is free text, so it goes through the safety screen first.
    """
    started = time.perf_counter()
    await require_entitlement(services.entitlement, user, SessionType.INTERVENTION)

    screened = CoachingMessage(
        message=body.feedback,
        user_id=user.id,
        context=MessageContext(session_type=SessionType.INTERVENTION),
    )
    safety = await services.safety.assess(screened)
    if not safety.should_proceed:
        return ApiResponse.ok(crisis_response(safety, elapsed_ms(started)), request_id=get_request_id(request))

    adapted = await services.prescriber.adapt_intervention(body.previous, body.feedback, body.direction)
    return ApiResponse.ok(
        {
            "intervention": adapted.model_dump(mode="json", by_alias=True),
            "adapted": adapted is not body.previous,
            "direction": body.direction,
        },
        request_id=get_request_id(request),
    )


@router.get("/history", dependencies=[Depends(default_rate_limit)])
async def coaching_history(
    request: Request,
    limit: int = Query(default=20, ge=1, le=100),
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    entries = await services.history.list_recent(user.id, limit=limit)
    return ApiResponse.ok({"entries": entries}, request_id=get_request_id(request))


@router.get("/questions/{topic}", dependencies=[Depends(default_rate_limit)])
async def question_sequence(
    topic: str,
    request: Request,
    _user: TokenUser = Depends(get_current_user),
) -> ApiResponse:
    """Static question bank for one topic; no generative call."""
    try:
        questions = generate_question_sequence(topic)
    except ValueError as e:
        raise NotFoundError(str(e)) from e
    return ApiResponse.ok({"topic": topic, "questions": questions}, request_id=get_request_id(request))
