"""Read-only existence checks for a user's profile and store membership."""
import asyncio
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from supabase import Client

from app.config import settings
from app.core.backend_errors import BackendErrorKind, classify_error, error_code, error_message
from app.modules.onboarding.schemas import ProbeOutcome, ProbeResult

logger = logging.getLogger(__name__)

PROFILE_CHECK = "profile"
MEMBERSHIP_CHECK = "store_membership"


class ProbeCache:
    """Short-lived (check, user_id) -> exists cache. Errors are never cached."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[bool, float]] = {}

    def get(self, check: str, user_id: str) -> Optional[bool]:
        if self.ttl_seconds <= 0:
            return None
        key = (check, user_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            exists, expiry = entry
            if self._clock() >= expiry:
                del self._entries[key]
                return None
            return exists

    def set(self, check: str, user_id: str, exists: bool) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[(check, user_id)] = (exists, self._clock() + self.ttl_seconds)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[1] == user_id]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


probe_cache = ProbeCache(settings.onboarding_cache_ttl_seconds)


class ExistenceProber:
    def __init__(self, supabase: Client, cache: Optional[ProbeCache] = None):
        self.supabase = supabase
        self.cache = cache

    def profile_exists(self, user_id: str) -> ProbeResult:
        """profiles.id is the auth user id; "no rows" is a plain False."""
        return self._check(PROFILE_CHECK, user_id, lambda: self.supabase.table("profiles")
                           .select("id")
                           .eq("id", user_id)
                           .limit(1)
                           .execute())

    def has_store_membership(self, user_id: str) -> ProbeResult:
        """Only store_members counts; stores.owner_id alone does not mean onboarded."""
        return self._check(MEMBERSHIP_CHECK, user_id, lambda: self.supabase.table("store_members")
                           .select("id")
                           .eq("user_id", user_id)
                           .limit(1)
                           .execute())

    async def probe(self, user_id: str) -> ProbeOutcome:
        """Run both checks concurrently and return once both have completed."""
        profile, membership = await asyncio.gather(
            run_in_threadpool(self.profile_exists, user_id),
            run_in_threadpool(self.has_store_membership, user_id),
        )
        return ProbeOutcome(profile=profile, membership=membership)

    def invalidate(self, user_id: str) -> None:
        if self.cache is not None:
            self.cache.invalidate(user_id)

    def _check(self, check: str, user_id: str, query) -> ProbeResult:
        if self.cache is not None:
            cached = self.cache.get(check, user_id)
            if cached is not None:
                return ProbeResult(check=check, exists=cached, cached=True)
        try:
            result = query()
        except Exception as e:
            return self._from_error(check, user_id, e)
        exists = bool(result is not None and result.data)
        if self.cache is not None:
            self.cache.set(check, user_id, exists)
        return ProbeResult(check=check, exists=exists)

    def _from_error(self, check: str, user_id: str, exc: Exception) -> ProbeResult:
        kind = classify_error(exc)
        code = error_code(exc)
        if kind == BackendErrorKind.NO_ROWS:
            return ProbeResult(check=check, exists=False)
        if kind == BackendErrorKind.TABLE_MISSING and check == MEMBERSHIP_CHECK:
            # Migrations not applied yet; treat as "no store" rather than a failure
            logger.info(f"store_members unavailable ({code}); treating user {user_id} as having no store")
            return ProbeResult(check=check, exists=False)
        logger.warning(f"{check} check failed for user {user_id}: {kind.value} ({code}): {error_message(exc)}")
        return ProbeResult(check=check, exists=False, error=kind, error_code=code)
