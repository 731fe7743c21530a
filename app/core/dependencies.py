"""
Core dependencies for route protection and onboarding checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.onboarding.prober import ProbeCache, probe_cache
from app.modules.onboarding.schemas import GuardAction
from app.modules.onboarding.service import OnboardingService
from supabase import Client
from typing import Optional
from datetime import timedelta
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user, or None when there is no token or it is no longer valid"""
    if credentials is None:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException:
        return None


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def require_super_user(user_data: dict = Depends(get_current_user_id)) -> dict:
    if not is_super_user(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super users can perform this action"
        )
    return user_data


def get_probe_cache() -> ProbeCache:
    return probe_cache


def get_onboarding_service(
    supabase: Client = Depends(get_supabase),
    cache: ProbeCache = Depends(get_probe_cache)
) -> OnboardingService:
    return OnboardingService(
        supabase,
        cache=cache,
        fresh_signup_window=timedelta(seconds=settings.fresh_signup_window_seconds)
    )


async def require_onboarded(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    service: OnboardingService = Depends(get_onboarding_service)
) -> dict:
    """Allow only users with a profile and a store membership; 409 carries where to send them"""
    decision = await service.evaluate(user_data, request.url.path)
    if decision.action != GuardAction.ALLOW:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Onboarding not completed",
                "action": decision.action.value,
                "redirect_to": decision.redirect_to,
                "reason": decision.reason,
            }
        )
    return user_data
