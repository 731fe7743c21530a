from datetime import datetime, timedelta, timezone

import pytest

from app.modules.onboarding.guard import decide, normalize_path, requested_location
from app.modules.onboarding.schemas import AuthIntent, GuardAction, GuardState, GuardUser

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _user(age: timedelta = timedelta(seconds=0)) -> GuardUser:
    return GuardUser(id="user-1", email="ana@example.com", created_at=NOW - age)


def _onboarded(path: str = "/", **overrides) -> GuardState:
    values = dict(
        user=_user(timedelta(days=90)),
        has_profile=True,
        has_store=True,
        onboarding_completed_at=NOW - timedelta(days=80),
        current_path=path,
        now=NOW,
    )
    values.update(overrides)
    return GuardState(**values)


@pytest.mark.parametrize("state", [
    GuardState(auth_loading=True),
    GuardState(auth_loading=True, user=_user()),
    GuardState(checks_pending=True, user=_user(), current_path="/onboarding"),
])
def test_loading_makes_no_decision(state):
    decision = decide(state)
    assert decision.action == GuardAction.LOADING
    assert decision.redirect_to is None
    assert decision.clear_intent is False


def test_anonymous_user_goes_to_login_remembering_path():
    decision = decide(GuardState(current_path="/estoque", intent=AuthIntent.LOGIN))
    assert decision.action == GuardAction.LOGIN
    assert decision.redirect_to == "/login?next=/estoque"
    # The user has not come back from the provider yet
    assert decision.clear_intent is False


def test_anonymous_user_on_home_goes_to_plain_login():
    assert decide(GuardState(current_path="/")).redirect_to == "/login"


def test_fresh_signup_without_rows_goes_to_onboarding():
    state = GuardState(user=_user(), has_profile=False, has_store=False, current_path="/", now=NOW)
    decision = decide(state)
    assert decision.action == GuardAction.ONBOARDING
    assert decision.redirect_to == "/onboarding"
    assert decision.reason == "missing_profile"


def test_login_intent_without_profile_goes_to_register():
    state = GuardState(
        user=_user(), has_profile=False, has_store=False,
        current_path="/", intent=AuthIntent.LOGIN, now=NOW
    )
    decision = decide(state)
    assert decision.action == GuardAction.REGISTER
    assert decision.redirect_to == "/register?error=no_account"
    assert decision.clear_intent is True


def test_login_intent_without_profile_wins_over_onboarding_exemption():
    state = GuardState(
        user=_user(), has_profile=False, current_path="/onboarding",
        intent=AuthIntent.LOGIN, now=NOW
    )
    assert decide(state).action == GuardAction.REGISTER


def test_register_intent_with_established_account_goes_to_login():
    decision = decide(_onboarded("/", intent=AuthIntent.REGISTER))
    assert decision.action == GuardAction.LOGIN_ACCOUNT_EXISTS
    assert decision.redirect_to == "/login?error=account_exists"
    assert decision.clear_intent is True


def test_register_intent_with_just_created_profile_continues():
    state = GuardState(
        user=_user(timedelta(seconds=3)), has_profile=True, has_store=False,
        current_path="/", intent=AuthIntent.REGISTER, now=NOW
    )
    decision = decide(state)
    assert decision.action == GuardAction.ONBOARDING
    assert decision.clear_intent is True


def test_register_intent_honours_custom_window():
    state = _onboarded("/produtos", intent=AuthIntent.REGISTER, user=_user(timedelta(minutes=10)))
    assert decide(state, fresh_signup_window=timedelta(hours=1)).action == GuardAction.ALLOW
    assert decide(state, fresh_signup_window=timedelta(minutes=1)).action == GuardAction.LOGIN_ACCOUNT_EXISTS


@pytest.mark.parametrize("has_profile,has_store,completed", [
    (False, False, None),
    (True, False, None),
    (False, True, NOW),
    (True, True, None),
    (True, True, NOW),
])
def test_onboarding_page_is_never_redirected(has_profile, has_store, completed):
    state = GuardState(
        user=_user(), has_profile=has_profile, has_store=has_store,
        onboarding_completed_at=completed, current_path="/onboarding", now=NOW
    )
    decision = decide(state)
    assert decision.action == GuardAction.ALLOW
    assert decision.redirect_to is None


def test_profile_without_store_goes_to_onboarding():
    decision = decide(_onboarded("/clientes", has_store=False))
    assert decision.action == GuardAction.ONBOARDING
    assert decision.reason == "missing_store"


def test_home_with_unfinished_onboarding_goes_to_onboarding():
    decision = decide(_onboarded("/", onboarding_completed_at=None))
    assert decision.action == GuardAction.ONBOARDING
    assert decision.reason == "onboarding_incomplete"


def test_unfinished_onboarding_only_blocks_home():
    assert decide(_onboarded("/financeiro", onboarding_completed_at=None)).action == GuardAction.ALLOW


@pytest.mark.parametrize("path", ["/", "/estoque", "/pedidos", "/perfil", "/onboarding"])
def test_fully_onboarded_user_is_allowed(path):
    decision = decide(_onboarded(path))
    assert decision.action == GuardAction.ALLOW
    assert decision.redirect_to is None


def test_allowed_decision_still_consumes_intent():
    decision = decide(_onboarded("/estoque", intent=AuthIntent.LOGIN))
    assert decision.action == GuardAction.ALLOW
    assert decision.clear_intent is True


def test_naive_timestamps_are_treated_as_utc():
    state = _onboarded(
        "/",
        intent=AuthIntent.REGISTER,
        user=GuardUser(id="u", created_at=datetime(2026, 1, 1)),
        now=datetime(2026, 10, 16),
    )
    assert decide(state).action == GuardAction.LOGIN_ACCOUNT_EXISTS


@pytest.mark.parametrize("raw,expected", [
    (None, "/"),
    ("", "/"),
    ("/", "/"),
    ("/onboarding/", "/onboarding"),
    ("/onboarding?step=2", "/onboarding"),
    ("estoque#top", "/estoque"),
])
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


def test_anonymous_user_redirect_keeps_query_string():
    decision = decide(GuardState(current_path="/pedidos?id=3#itens"))
    assert decision.redirect_to == "/login?next=/pedidos%3Fid%3D3"


@pytest.mark.parametrize("raw,expected", [
    (None, "/"),
    ("/", "/"),
    ("/pedidos?id=3", "/pedidos?id=3"),
    ("pedidos?id=3#itens", "/pedidos?id=3"),
])
def test_requested_location_drops_only_fragment(raw, expected):
    assert requested_location(raw) == expected


def test_register_intent_on_onboarding_page_is_allowed():
    state = _onboarded(
        "/onboarding",
        has_store=False,
        onboarding_completed_at=None,
        intent=AuthIntent.REGISTER,
    )
    decision = decide(state)
    assert decision.action == GuardAction.ALLOW
    assert decision.reason == "onboarding_page"
    assert decision.clear_intent is True
