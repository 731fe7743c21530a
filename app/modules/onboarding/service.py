from fastapi.concurrency import run_in_threadpool
from supabase import Client
from app.modules.onboarding.guard import decide
from app.modules.onboarding.prober import ExistenceProber, ProbeCache
from app.modules.onboarding.schemas import (
    AuthIntent, GuardDecision, GuardState, GuardUser, OnboardingStatusResponse, ProbeOutcome
)
from app.modules.stores.schemas import StoreResponse
from app.modules.stores.service import StoreService
from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)


class OnboardingService:
    def __init__(
        self,
        supabase: Client,
        cache: Optional[ProbeCache] = None,
        fresh_signup_window: timedelta = timedelta(minutes=5)
    ):
        self.supabase = supabase
        self.prober = ExistenceProber(supabase, cache)
        self.store_service = StoreService(supabase)
        self.fresh_signup_window = fresh_signup_window

    def _resolve_store(self, user_id: str) -> Optional[StoreResponse]:
        try:
            return self.store_service.find_store_for_user(user_id)
        except Exception as e:
            logger.warning(f"Could not resolve store for user {user_id}: {e}")
            return None

    async def inspect(self, user_id: str) -> Tuple[ProbeOutcome, Optional[StoreResponse]]:
        outcome = await self.prober.probe(user_id)
        store = await run_in_threadpool(self._resolve_store, user_id) if outcome.has_store else None
        return outcome, store

    async def evaluate(
        self,
        user_data: Optional[Dict[str, Any]],
        path: str,
        intent: Optional[AuthIntent] = None
    ) -> GuardDecision:
        """Probe the user's onboarding state and run it through the guard."""
        if user_data is None:
            return decide(GuardState(current_path=path, intent=intent), self.fresh_signup_window)

        user = GuardUser(
            id=user_data["id"],
            email=user_data.get("email"),
            created_at=user_data.get("created_at"),
        )
        outcome, store = await self.inspect(user.id)
        state = GuardState(
            user=user,
            has_profile=outcome.has_profile,
            has_store=outcome.has_store,
            onboarding_completed_at=store.onboarding_completed_at if store else None,
            current_path=path,
            intent=intent,
            now=datetime.now(timezone.utc),
        )
        decision = decide(state, self.fresh_signup_window)
        logger.debug(
            f"Guard for user {user.id} path={path} profile={outcome.has_profile} "
            f"store={outcome.has_store} -> {decision.action.value}"
        )
        return decision

    async def status(self, user_id: str) -> OnboardingStatusResponse:
        outcome, store = await self.inspect(user_id)
        errors = {
            r.check: r.error.value
            for r in (outcome.profile, outcome.membership)
            if r.error is not None
        }
        return OnboardingStatusResponse(
            user_id=user_id,
            has_profile=outcome.has_profile,
            has_store=outcome.has_store,
            store_id=store.id if store else None,
            onboarding_completed_at=store.onboarding_completed_at if store else None,
            errors=errors,
        )

    def invalidate(self, user_id: str) -> None:
        self.prober.invalidate(user_id)
