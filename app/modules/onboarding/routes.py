from fastapi import APIRouter, Depends, Query, Request, Response
from app.modules.onboarding import intent as auth_intent
from app.modules.onboarding.schemas import GuardDecision, OnboardingStatusResponse
from app.modules.onboarding.service import OnboardingService
from app.core.dependencies import get_current_user_id, get_onboarding_service, get_optional_user
from typing import Dict, Optional

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("/guard", response_model=GuardDecision)
async def guard(
    request: Request,
    response: Response,
    path: str = Query("/", description="Frontend path the user is navigating to"),
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: OnboardingService = Depends(get_onboarding_service)
):
    """Decide whether the frontend may render `path` or where to redirect instead"""
    intent = auth_intent.read_intent(request)
    decision = await service.evaluate(user_data, path, intent)
    stale_cookie = user_data is not None and intent is None and auth_intent.has_intent_cookie(request)
    if decision.clear_intent or stale_cookie:
        auth_intent.clear_intent(response)
    return decision


@router.get("/status", response_model=OnboardingStatusResponse)
async def onboarding_status(
    user_data: Dict = Depends(get_current_user_id),
    service: OnboardingService = Depends(get_onboarding_service)
):
    """Profile/store presence for the current user, including any backend errors seen"""
    return await service.status(user_data["id"])
