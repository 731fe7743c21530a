"""
One-shot auth intent carried across the login/OAuth redirect.

The login page records whether the user clicked "log in" or "sign up" before
leaving for the identity provider; the guard consumes that value on the first
decision it makes for the returning user. Stored as an HTTP-only cookie so it
survives the round trip without any server-side session.
"""
import logging
from typing import Optional

from fastapi import Request, Response

from app.config import settings
from app.modules.onboarding.schemas import AuthIntent

logger = logging.getLogger(__name__)


def set_intent(response: Response, intent: AuthIntent) -> None:
    response.set_cookie(
        key=settings.auth_intent_cookie_name,
        value=intent.value,
        max_age=settings.auth_intent_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def read_intent(request: Request) -> Optional[AuthIntent]:
    raw = request.cookies.get(settings.auth_intent_cookie_name)
    if not raw:
        return None
    try:
        return AuthIntent(raw)
    except ValueError:
        logger.debug(f"Ignoring unknown auth intent value: {raw!r}")
        return None


def has_intent_cookie(request: Request) -> bool:
    return settings.auth_intent_cookie_name in request.cookies


def clear_intent(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_intent_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
