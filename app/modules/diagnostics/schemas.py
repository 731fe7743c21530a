from pydantic import BaseModel
from typing import Optional, List


class TableCheck(BaseModel):
    table: str
    status: str  # ok | missing | no_access | error
    row_count: Optional[int] = None
    error: Optional[str] = None


class UserRef(BaseModel):
    id: str
    email: Optional[str] = None


class ProfileSyncReport(BaseModel):
    auth_users: int = 0
    profiles: int = 0
    users_without_profile: List[UserRef] = []
    orphan_profile_ids: List[str] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.users_without_profile and not self.orphan_profile_ids


class StoreOwnerReport(BaseModel):
    stores: int = 0
    store_members: int = 0
    stores_without_owner_member: List[str] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stores_without_owner_member


class TriggerCheck(BaseModel):
    test_user_id: Optional[str] = None
    profile_created: bool = False
    membership_created: bool = False
    cleaned_up: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.profile_created


class DiagnosticsReport(BaseModel):
    ok: bool
    tables: List[TableCheck]
    profile_sync: ProfileSyncReport
    store_owners: StoreOwnerReport
    trigger: Optional[TriggerCheck] = None
