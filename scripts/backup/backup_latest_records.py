"""
Snapshot the storefront tables from the hosted project into a JSON backup.

Usage:
    ENV_FILE=.env.old python scripts/backup/backup_latest_records.py

Environment:
    SUPABASE_URL, SUPABASE_ANON_KEY      source project
    BACKUP_AUTH_EMAIL/PASSWORD           optional sign-in for RLS-protected tables
    BACKUP_RECORD_LIMIT                  rows per table (empty = all)
    BACKUP_OUTPUT_DIR                    where latest-backup-<ts>.json is written
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
from libs.common.logging import configure_logging
from libs.common.supabase import STORE_ERRORS, SupabaseClient
from services.backup_service.export import export_snapshot
from services.backup_service.snapshot import save_snapshot


async def authenticate(client: SupabaseClient, email, password) -> bool:
    if not (email and password):
        return False
    print("🔐 Authenticating...")
    try:
        user = await client.sign_in_with_password(email, password)
    except STORE_ERRORS as e:
        print(f"⚠️  Authentication failed: {e}")
        print("   Continuing with anon key (may have limited access)")
        return False
    print(f"✅ Authenticated as: {user.get('email')}\n")
    return True


async def main() -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1
    configure_logging(service="backup")

    limit = settings.BACKUP_RECORD_LIMIT
    print(f"Backing up {limit or 'all'} records per table from {settings.SUPABASE_URL}...\n")

    async with SupabaseClient(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY) as client:
        is_authenticated = await authenticate(
            client, settings.BACKUP_AUTH_EMAIL, settings.BACKUP_AUTH_PASSWORD
        )
        snapshot = await export_snapshot(
            client,
            source=settings.SUPABASE_URL,
            limit=limit,
            authenticated=is_authenticated,
            progress=print,
        )

    try:
        output_file = save_snapshot(snapshot, project_root / settings.BACKUP_OUTPUT_DIR)
    except OSError as e:
        print(f"❌ Backup failed: {e}")
        return 1

    total = sum(len(rows) for rows in snapshot.tables.values())
    print(f"\n✅ Backup saved to {output_file} ({total} records)")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
