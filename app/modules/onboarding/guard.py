"""
Route guard for the storefront frontend.

Given what is known about the current user, decide whether the requested path
may be shown or where the browser should be sent instead. Rows are evaluated
top to bottom and the first match wins:

    1. auth or existence checks still running      -> loading, no decision
    2. no authenticated user                       -> /login (remember path)
    3. no profile and intent == login              -> /register?error=no_account
    4. path is /onboarding                         -> allow (avoids redirect loop)
    5. profile, intent == register, old account    -> /login?error=account_exists
    6. missing profile or store membership         -> /onboarding
    7. path is / and onboarding not completed      -> /onboarding
    8. otherwise                                   -> allow

A profile that does not exist yet and one that will never exist look the same
here; both go to onboarding, which is where they get completed.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote

from app.modules.onboarding.schemas import (
    AuthIntent, GuardAction, GuardDecision, GuardState
)

HOME_PATH = "/"
LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
ONBOARDING_PATH = "/onboarding"

NO_ACCOUNT_REDIRECT = f"{REGISTER_PATH}?error=no_account"
ACCOUNT_EXISTS_REDIRECT = f"{LOGIN_PATH}?error=account_exists"

DEFAULT_FRESH_SIGNUP_WINDOW = timedelta(minutes=5)


def normalize_path(path: Optional[str]) -> str:
    """Strip query/fragment and trailing slash; always returns an absolute path."""
    if not path:
        return HOME_PATH
    path = path.split("#", 1)[0].split("?", 1)[0].strip()
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/") or HOME_PATH


def requested_location(path: Optional[str]) -> str:
    """Path plus query string, as the user asked for it; only the fragment is dropped."""
    if not path:
        return HOME_PATH
    location = path.split("#", 1)[0].strip()
    if not location.startswith("/"):
        location = "/" + location
    return location


def login_redirect(next_location: str) -> str:
    if normalize_path(next_location) == HOME_PATH and "?" not in next_location:
        return LOGIN_PATH
    return f"{LOGIN_PATH}?next={quote(next_location, safe='/')}"


def _is_established_account(state: GuardState, fresh_signup_window: timedelta) -> bool:
    created_at = state.user.created_at if state.user else None
    if created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    now = state.now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - created_at > fresh_signup_window


def decide(
    state: GuardState,
    fresh_signup_window: timedelta = DEFAULT_FRESH_SIGNUP_WINDOW
) -> GuardDecision:
    """Apply the guard decision table to a snapshot of the user's onboarding state."""
    if state.auth_loading or state.checks_pending:
        return GuardDecision(action=GuardAction.LOADING, reason="checks_pending")

    path = normalize_path(state.current_path)

    if state.user is None:
        return GuardDecision(
            action=GuardAction.LOGIN,
            redirect_to=login_redirect(requested_location(state.current_path)),
            reason="not_authenticated"
        )

    # The intent is one-shot: once an authenticated user reaches a decision it is spent
    clear_intent = state.intent is not None

    if not state.has_profile and state.intent == AuthIntent.LOGIN:
        return GuardDecision(
            action=GuardAction.REGISTER,
            redirect_to=NO_ACCOUNT_REDIRECT,
            clear_intent=True,
            reason="no_account"
        )

    if path == ONBOARDING_PATH:
        return GuardDecision(action=GuardAction.ALLOW, clear_intent=clear_intent, reason="onboarding_page")

    if (
        state.has_profile
        and state.intent == AuthIntent.REGISTER
        and _is_established_account(state, fresh_signup_window)
    ):
        return GuardDecision(
            action=GuardAction.LOGIN_ACCOUNT_EXISTS,
            redirect_to=ACCOUNT_EXISTS_REDIRECT,
            clear_intent=True,
            reason="account_exists"
        )

    if not state.has_profile or not state.has_store:
        return GuardDecision(
            action=GuardAction.ONBOARDING,
            redirect_to=ONBOARDING_PATH,
            clear_intent=clear_intent,
            reason="missing_profile" if not state.has_profile else "missing_store"
        )

    if path == HOME_PATH and state.onboarding_completed_at is None:
        return GuardDecision(
            action=GuardAction.ONBOARDING,
            redirect_to=ONBOARDING_PATH,
            clear_intent=clear_intent,
            reason="onboarding_incomplete"
        )

    return GuardDecision(action=GuardAction.ALLOW, clear_intent=clear_intent, reason="onboarded")
