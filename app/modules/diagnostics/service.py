"""
Backend consistency checks: schema drift, profile/auth user sync, store
ownership rows and the signup trigger.

Every check records its own failure in the report instead of raising, so one
broken table does not hide the state of the others.
"""
import logging
import secrets
import time
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from supabase import Client

from app.core.backend_errors import BackendErrorKind, classify_error, error_message
from app.modules.diagnostics.schemas import (
    DiagnosticsReport, ProfileSyncReport, StoreOwnerReport, TableCheck, TriggerCheck, UserRef
)

logger = logging.getLogger(__name__)

CORE_TABLES = ("profiles", "stores", "store_members", "products", "categories")
PAGE_SIZE = 1000


class DiagnosticsService:
    def __init__(self, supabase: Client, sleep: Callable[[float], None] = time.sleep):
        self.supabase = supabase
        self._sleep = sleep

    def check_tables(self, tables: Sequence[str] = CORE_TABLES) -> List[TableCheck]:
        checks = []
        for table in tables:
            try:
                result = self.supabase.table(table)\
                    .select("*", count="exact")\
                    .limit(1)\
                    .execute()
                checks.append(TableCheck(table=table, status="ok", row_count=result.count))
            except Exception as e:
                kind = classify_error(e)
                if kind == BackendErrorKind.TABLE_MISSING:
                    status = "missing"
                elif kind == BackendErrorKind.PERMISSION_DENIED:
                    status = "no_access"
                else:
                    status = "error"
                logger.warning(f"Table check {table}: {status} ({error_message(e)})")
                checks.append(TableCheck(table=table, status=status, error=error_message(e)))
        return checks

    def _list_auth_users(self) -> List[UserRef]:
        users: List[UserRef] = []
        page = 1
        while True:
            batch = self.supabase.auth.admin.list_users(page=page, per_page=PAGE_SIZE)
            users.extend(UserRef(id=u.id, email=u.email) for u in batch)
            if len(batch) < PAGE_SIZE:
                return users
            page += 1

    def _select_all(self, table: str, columns: str) -> List[Dict]:
        rows: List[Dict] = []
        start = 0
        while True:
            result = self.supabase.table(table)\
                .select(columns)\
                .range(start, start + PAGE_SIZE - 1)\
                .execute()
            batch = result.data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def check_profile_sync(self) -> ProfileSyncReport:
        """Auth users without a profile, and profiles whose auth user is gone"""
        try:
            users = self._list_auth_users()
            profile_ids = {p["id"] for p in self._select_all("profiles", "id")}
        except Exception as e:
            logger.error(f"Profile sync check failed: {error_message(e)}")
            return ProfileSyncReport(error=error_message(e))

        user_ids = {u.id for u in users}
        report = ProfileSyncReport(
            auth_users=len(users),
            profiles=len(profile_ids),
            users_without_profile=[u for u in users if u.id not in profile_ids],
            orphan_profile_ids=sorted(profile_ids - user_ids),
        )
        if not report.ok:
            logger.warning(
                f"{len(report.users_without_profile)} users without profile, "
                f"{len(report.orphan_profile_ids)} orphan profiles"
            )
        return report

    def check_store_owners(self) -> StoreOwnerReport:
        """Stores whose owner has no 'owner' row in store_members"""
        try:
            stores = self._select_all("stores", "id, owner_id")
            members = self._select_all("store_members", "store_id, user_id, role")
        except Exception as e:
            logger.error(f"Store owner check failed: {error_message(e)}")
            return StoreOwnerReport(error=error_message(e))

        owner_rows = {
            (m["store_id"], m["user_id"]) for m in members if m.get("role") == "owner"
        }
        missing = [s["id"] for s in stores if (s["id"], s.get("owner_id")) not in owner_rows]
        if missing:
            logger.warning(f"{len(missing)} stores without owner in store_members")
        return StoreOwnerReport(
            stores=len(stores),
            store_members=len(members),
            stores_without_owner_member=missing,
        )

    def _row_exists(self, table: str, column: str, value: str) -> bool:
        result = self.supabase.table(table)\
            .select(column)\
            .eq(column, value)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def check_signup_trigger(self, wait_seconds: float = 2.0) -> TriggerCheck:
        """Create a throwaway auth user, wait for the trigger, then remove the user again"""
        check = TriggerCheck()
        email = f"trigger-check-{uuid.uuid4().hex[:12]}@example.com"
        try:
            created = self.supabase.auth.admin.create_user({
                "email": email,
                "password": secrets.token_urlsafe(24),
                "email_confirm": True,
            })
            if not created or not created.user:
                check.error = "Could not create test user"
                return check
            check.test_user_id = created.user.id
            logger.info(f"Created trigger test user {check.test_user_id}, waiting {wait_seconds}s")

            self._sleep(wait_seconds)

            check.profile_created = self._row_exists("profiles", "id", check.test_user_id)
            try:
                check.membership_created = self._row_exists("store_members", "user_id", check.test_user_id)
            except Exception as e:
                if classify_error(e) != BackendErrorKind.TABLE_MISSING:
                    raise
            if not check.profile_created:
                logger.warning("Signup trigger did not create a profile row")
        except Exception as e:
            logger.error(f"Signup trigger check failed: {error_message(e)}")
            check.error = error_message(e)
        finally:
            if check.test_user_id:
                check.cleaned_up = self._cleanup_test_user(check.test_user_id)
        return check

    def _cleanup_test_user(self, user_id: str) -> bool:
        try:
            self.supabase.auth.admin.delete_user(user_id)
            # In case the profile FK does not cascade
            self.supabase.table("profiles").delete().eq("id", user_id).execute()
            return True
        except Exception as e:
            logger.error(f"Failed to clean up trigger test user {user_id}: {error_message(e)}")
            return False

    def build_report(self, include_trigger: bool = False, wait_seconds: float = 2.0) -> DiagnosticsReport:
        tables = self.check_tables()
        profile_sync = self.check_profile_sync()
        store_owners = self.check_store_owners()
        trigger: Optional[TriggerCheck] = None
        if include_trigger:
            trigger = self.check_signup_trigger(wait_seconds)

        ok = (
            all(t.status == "ok" for t in tables)
            and profile_sync.ok
            and store_owners.ok
            and (trigger is None or trigger.ok)
        )
        return DiagnosticsReport(
            ok=ok,
            tables=tables,
            profile_sync=profile_sync,
            store_owners=store_owners,
            trigger=trigger,
        )
