from supabase import Client
from app.core.backend_errors import BackendErrorKind, classify_error
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

NOT_PROVISIONED_DETAIL = "Profile not provisioned yet"


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user id (profiles.id is the user id)"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail=NOT_PROVISIONED_DETAIL)

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if classify_error(e) == BackendErrorKind.NO_ROWS:
                raise HTTPException(status_code=404, detail=NOT_PROVISIONED_DETAIL)
            logger.error(f"Error getting profile {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update an existing profile. Never inserts: the signup trigger owns row creation."""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if profile_data.full_name is not None:
                update_data["full_name"] = profile_data.full_name.strip()
            if profile_data.avatar_url is not None:
                update_data["avatar_url"] = profile_data.avatar_url
            if profile_data.store_name is not None:
                update_data["store_name"] = profile_data.store_name.strip()

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                # Trigger may still be running; the client retries later
                logger.info(f"Profile update for {user_id} matched no row")
                raise HTTPException(status_code=404, detail=NOT_PROVISIONED_DETAIL)

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if classify_error(e) == BackendErrorKind.NO_ROWS:
                raise HTTPException(status_code=404, detail=NOT_PROVISIONED_DETAIL)
            logger.error(f"Error updating profile {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
