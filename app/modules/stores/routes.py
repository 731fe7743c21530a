from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.stores.schemas import StoreResponse
from app.modules.stores.service import StoreService
from app.modules.onboarding.prober import ProbeCache
from app.core.dependencies import get_current_user_id, get_probe_cache, require_onboarded
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/stores", tags=["stores"])


def get_store_service(supabase: Client = Depends(get_supabase)) -> StoreService:
    return StoreService(supabase)


@router.get("/me", response_model=StoreResponse)
async def get_my_store(
    user_data: Dict = Depends(require_onboarded),
    service: StoreService = Depends(get_store_service)
):
    """Get the store the current user owns or belongs to"""
    return service.get_store_for_user(user_data["id"])


@router.post("/me/complete-onboarding", response_model=StoreResponse)
async def complete_onboarding(
    user_data: Dict = Depends(get_current_user_id),
    service: StoreService = Depends(get_store_service),
    cache: ProbeCache = Depends(get_probe_cache)
):
    """Mark onboarding as finished on the user's existing store"""
    store = service.complete_onboarding(user_data["id"])
    cache.invalidate(user_data["id"])
    return store
