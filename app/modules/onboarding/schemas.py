from pydantic import BaseModel
from typing import Optional, Dict
from datetime import datetime
from enum import Enum

from app.core.backend_errors import BackendErrorKind


class AuthIntent(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


class GuardAction(str, Enum):
    LOADING = "loading"
    LOGIN = "login"
    REGISTER = "register"
    LOGIN_ACCOUNT_EXISTS = "login_account_exists"
    ONBOARDING = "onboarding"
    ALLOW = "allow"


class ProbeResult(BaseModel):
    check: str  # "profile" | "store_membership"
    exists: bool = False
    error: Optional[BackendErrorKind] = None
    error_code: Optional[str] = None
    cached: bool = False


class ProbeOutcome(BaseModel):
    profile: ProbeResult
    membership: ProbeResult

    @property
    def has_profile(self) -> bool:
        return self.profile.exists

    @property
    def has_store(self) -> bool:
        return self.membership.exists


class GuardUser(BaseModel):
    id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class GuardState(BaseModel):
    auth_loading: bool = False
    checks_pending: bool = False
    user: Optional[GuardUser] = None
    has_profile: bool = False
    has_store: bool = False
    onboarding_completed_at: Optional[datetime] = None
    current_path: str = "/"
    intent: Optional[AuthIntent] = None
    now: Optional[datetime] = None


class GuardDecision(BaseModel):
    action: GuardAction
    redirect_to: Optional[str] = None
    clear_intent: bool = False
    reason: str


class IntentRequest(BaseModel):
    intent: AuthIntent


class IntentResponse(BaseModel):
    intent: AuthIntent
    expires_in: int


class OnboardingStatusResponse(BaseModel):
    user_id: str
    has_profile: bool
    has_store: bool
    store_id: Optional[str] = None
    onboarding_completed_at: Optional[datetime] = None
    errors: Dict[str, str] = {}
