"""
Backend Diagnostics Script
Checks that the Supabase project matches what the app expects: core tables
exist, every auth user has a profile, every store has its owner in
store_members, and (optionally) that the signup trigger creates profiles.

Run: python -m app.scripts.diagnose_backend [--trigger] [--wait 2]
Requires SUPABASE_SERVICE_ROLE_KEY.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import SupabaseClient
from app.modules.diagnostics.service import DiagnosticsService
from app.modules.diagnostics.schemas import DiagnosticsReport
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def log_report(report: DiagnosticsReport) -> None:
    for table in report.tables:
        if table.status == "ok":
            logger.info(f"table {table.table}: ok ({table.row_count} rows)")
        else:
            logger.warning(f"table {table.table}: {table.status} - {table.error}")

    sync = report.profile_sync
    if sync.error:
        logger.error(f"profile sync: {sync.error}")
    else:
        logger.info(f"profile sync: {sync.auth_users} auth users, {sync.profiles} profiles")
        for user in sync.users_without_profile:
            logger.warning(f"user without profile: {user.email} ({user.id})")
        for profile_id in sync.orphan_profile_ids:
            logger.warning(f"orphan profile: {profile_id}")

    owners = report.store_owners
    if owners.error:
        logger.error(f"store owners: {owners.error}")
    else:
        logger.info(f"store owners: {owners.stores} stores, {owners.store_members} members")
        for store_id in owners.stores_without_owner_member:
            logger.warning(f"store without owner member: {store_id}")

    if report.trigger is not None:
        trigger = report.trigger
        if trigger.error:
            logger.error(f"signup trigger: {trigger.error}")
        else:
            logger.info(
                f"signup trigger: profile={trigger.profile_created} "
                f"membership={trigger.membership_created} cleaned_up={trigger.cleaned_up}"
            )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check Supabase schema and onboarding consistency")
    parser.add_argument("--trigger", action="store_true", help="create a throwaway user to test the signup trigger")
    parser.add_argument("--wait", type=float, default=2.0, help="seconds to wait for the trigger")
    args = parser.parse_args(argv)

    if not SupabaseClient.has_service_client():
        logger.error("SUPABASE_SERVICE_ROLE_KEY is not set")
        return 1

    try:
        service = DiagnosticsService(SupabaseClient.get_service_client())
        report = service.build_report(include_trigger=args.trigger, wait_seconds=args.wait)
    except Exception as e:
        logger.error(f"Error during diagnostics: {e}")
        return 1

    log_report(report)
    if report.ok:
        logger.info("Diagnostics completed: all checks passed")
        return 0
    logger.warning("Diagnostics completed with problems")
    return 1


if __name__ == "__main__":
    sys.exit(main())
