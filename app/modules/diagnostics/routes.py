from fastapi import APIRouter, Depends, HTTPException, Query
from app.database.supabase_client import SupabaseClient
from app.modules.diagnostics.schemas import DiagnosticsReport
from app.modules.diagnostics.service import DiagnosticsService
from app.core.dependencies import require_super_user
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/diagnostics", tags=["diagnostics"])


def get_admin_client() -> Client:
    """Service role client; auth.admin is not available with the anon key"""
    if not SupabaseClient.has_service_client():
        raise HTTPException(
            status_code=503,
            detail="Service role key not configured. Diagnostics need admin access."
        )
    return SupabaseClient.get_service_client()


def get_diagnostics_service(supabase: Client = Depends(get_admin_client)) -> DiagnosticsService:
    return DiagnosticsService(supabase)


@router.get("/report", response_model=DiagnosticsReport)
def diagnostics_report(
    trigger: bool = Query(False, description="Also run the signup trigger smoke test"),
    wait: float = Query(2.0, ge=0, le=30),
    user_data: Dict = Depends(require_super_user),
    service: DiagnosticsService = Depends(get_diagnostics_service)
):
    """Schema, profile sync and store ownership checks (super user only)"""
    return service.build_report(include_trigger=trigger, wait_seconds=wait)
