from fastapi import APIRouter, Depends, Response, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
)
from app.modules.auth.service import AuthService
from app.modules.onboarding import intent as auth_intent
from app.modules.onboarding.schemas import IntentRequest, IntentResponse
from app.core.dependencies import get_auth_service, get_current_user_id, is_super_user
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.post("/intent", response_model=IntentResponse)
async def record_intent(request: IntentRequest, response: Response):
    """Remember whether the user chose log in or sign up before leaving for the auth provider"""
    auth_intent.set_intent(response, request.intent)
    return IntentResponse(intent=request.intent, expires_in=settings.auth_intent_max_age_seconds)


@router.get("/me")
async def get_current_user(current_user: Dict = Depends(get_current_user_id)):
    """Get current authenticated user"""
    return {**current_user, "is_super_user": is_super_user(current_user)}
