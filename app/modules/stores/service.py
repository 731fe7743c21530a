from supabase import Client
from app.core.backend_errors import BackendErrorKind, classify_error
from app.modules.stores.schemas import StoreResponse
from typing import Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class StoreService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_store_for_user(self, user_id: str) -> Optional[StoreResponse]:
        """Store owned by the user, else the store of their first membership.

        Returns None when nothing is found or the tables are not there yet;
        other backend errors propagate to the caller.
        """
        try:
            owned = self.supabase.table("stores")\
                .select("*")\
                .eq("owner_id", user_id)\
                .limit(1)\
                .execute()
            if owned.data:
                return StoreResponse(**owned.data[0], membership_role="owner")

            member = self.supabase.table("store_members")\
                .select("store_id, role")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not member.data or not member.data[0].get("store_id"):
                return None

            store = self.supabase.table("stores")\
                .select("*")\
                .eq("id", member.data[0]["store_id"])\
                .limit(1)\
                .execute()
            if not store.data:
                return None
            return StoreResponse(**store.data[0], membership_role=member.data[0].get("role", "member"))
        except Exception as e:
            kind = classify_error(e)
            if kind in (BackendErrorKind.NO_ROWS, BackendErrorKind.TABLE_MISSING):
                logger.info(f"No store resolved for user {user_id}: {kind.value}")
                return None
            raise

    def get_store_for_user(self, user_id: str) -> StoreResponse:
        try:
            store = self.find_store_for_user(user_id)
        except Exception as e:
            logger.error(f"Error getting store for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        if store is None:
            raise HTTPException(status_code=404, detail="Store not found")
        return store

    def complete_onboarding(self, user_id: str) -> StoreResponse:
        """Stamp onboarding_completed_at on the user's existing store (never creates one)."""
        store = self.get_store_for_user(user_id)
        if store.onboarding_completed_at is not None:
            return store
        try:
            result = self.supabase.table("stores")\
                .update({"onboarding_completed_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", store.id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Store not found")

            logger.info(f"Onboarding completed for store {store.id} by user {user_id}")
            return StoreResponse(**result.data[0], membership_role=store.membership_role)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error completing onboarding for store {store.id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
