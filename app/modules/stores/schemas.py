from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class StoreResponse(BaseModel):
    id: str
    owner_id: str
    name: Optional[str] = None
    whatsapp: Optional[str] = None
    primary_color: Optional[str] = None
    logo_url: Optional[str] = None
    onboarding_completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    membership_role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
