"""User profile endpoints."""

from fastapi import APIRouter, Depends, Request

from auracoach.api.dependencies import default_rate_limit, get_current_user, get_request_id, get_services
from auracoach.core.auth_jwt import TokenUser
from auracoach.schemas.envelope import ApiResponse
from auracoach.schemas.profile import ProfileUpdate
from auracoach.services import CoachingServices

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(default_rate_limit)])


@router.get("/profile")
async def get_profile(
    request: Request,
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    """Return the stored profile, or defaults if the user has none yet."""
    profile = await services.profiles.get_or_default(user.id, user.email)
    return ApiResponse.ok(profile, request_id=get_request_id(request))


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    request: Request,
    user: TokenUser = Depends(get_current_user),
    services: CoachingServices = Depends(get_services),
) -> ApiResponse:
    """Shallow-merge preferences and psychological profile fields."""
    profile = await services.profiles.merge_update(user.id, body, email=user.email)
    return ApiResponse.ok(profile, request_id=get_request_id(request))
