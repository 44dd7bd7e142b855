"""
Create the admin auth user in the destination project from a backup profile.

Run before restore_backup.py so that profiles, invoice settings and orders can
keep their user_id references.

Environment:
    SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY   destination project
    BACKUP_FILE                              snapshot (default: newest in BACKUP_OUTPUT_DIR)
    NEW_ADMIN_EMAIL, NEW_ADMIN_PASSWORD      credentials for the new user
"""

import asyncio
import os
import sys
from pathlib import Path

# Add project root to path to import libs
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from dotenv import load_dotenv

# MUST be done before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[2]
env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from pydantic import ValidationError

from libs.common.config import get_settings
from libs.common.supabase import STORE_ERRORS, SupabaseClient
from services.backup_service.identity import (
    IdentityError,
    ensure_admin_user_from_snapshot,
)
from services.backup_service.snapshot import (
    SnapshotError,
    latest_backup_file,
    load_snapshot,
)


async def main() -> int:
    print("🚀 Creating auth user in new Supabase project from backup profile...\n")
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    email = settings.NEW_ADMIN_EMAIL
    password = settings.NEW_ADMIN_PASSWORD
    if not (email and password):
        print("❌ NEW_ADMIN_EMAIL and NEW_ADMIN_PASSWORD must be set.")
        return 1

    backup_file = settings.BACKUP_FILE or latest_backup_file(
        project_root / settings.BACKUP_OUTPUT_DIR
    )
    if not backup_file:
        print("❌ No backup file found. Set BACKUP_FILE.")
        return 1

    try:
        snapshot = load_snapshot(backup_file)
    except SnapshotError as e:
        print(f"❌ {e}")
        return 1

    profiles = snapshot.rows("profiles")
    if profiles:
        profile = profiles[0]
        print("📋 Backup profile:")
        print(f"   User ID: {profile.get('user_id')}")
        print(f"   Full Name: {profile.get('full_name') or 'Admin'}")
        print(f"   Email (backup): {profile.get('email')}")
        print(f"   Email (new):    {email}")

    async with SupabaseClient(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
    ) as client:
        try:
            result = await ensure_admin_user_from_snapshot(
                client, snapshot, email, password
            )
        except IdentityError as e:
            print(f"❌ {e}")
            return 1
        except STORE_ERRORS as e:
            print(f"❌ Failed to create auth user: {e}")
            return 1

    if result.created:
        print("✅ Created auth user:")
    else:
        print("ℹ️  User already exists in auth.users. Skipping creation.")
    print(f"   id: {result.user_id}")
    print(f"   email: {result.email}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
