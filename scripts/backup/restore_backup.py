"""
Restore a JSON backup into the hosted project, repairing foreign keys.

Usage:
    ENV_FILE=.env.new python scripts/backup/restore_backup.py
    BACKUP_FILE=backups/latest-backup-2025-11-26T06-07-03.772Z.json python scripts/backup/restore_backup.py

Environment:
    SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY   destination project (bypasses RLS)
    BACKUP_FILE                              snapshot to restore (default: newest in BACKUP_OUTPUT_DIR)
    RESTORE_TABLE_DELAY_SECONDS              pause between tables
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
from libs.common.supabase import SupabaseClient
from services.backup_service.restore import RestoreSummary, restore_snapshot
from services.backup_service.snapshot import (
    SnapshotError,
    latest_backup_file,
    load_snapshot,
)


def print_summary(summary: RestoreSummary) -> None:
    print("\n" + "=" * 50)
    print("📊 Restoration Summary:")
    print(f"✅ Total records inserted: {summary.total_written}")
    print(f"⚠️  Records dropped (invalid references): {summary.total_dropped}")
    print(f"❌ Total errors: {summary.total_errors}")
    if summary.skipped_tables:
        print(f"⏭️  Skipped tables: {', '.join(summary.skipped_tables)}")
    print("=" * 50)


async def main() -> int:
    print("🚀 Starting backup restoration...\n")
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 1
    configure_logging(service="backup")

    backup_file = settings.BACKUP_FILE or latest_backup_file(
        project_root / settings.BACKUP_OUTPUT_DIR
    )
    if not backup_file:
        print(
            "❌ No backup file found. Set BACKUP_FILE or put backups in "
            f"{settings.BACKUP_OUTPUT_DIR}/."
        )
        return 1

    print(f"📂 Reading backup from: {backup_file}\n")
    try:
        snapshot = load_snapshot(backup_file)
    except SnapshotError as e:
        print(f"❌ Restoration failed: {e}")
        return 1

    print(f"📅 Backup generated at: {snapshot.generated_at}")
    print(f"📊 Backup limit: {snapshot.limit}\n")

    async with SupabaseClient(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
    ) as client:
        summary = await restore_snapshot(
            client,
            snapshot,
            delay=settings.RESTORE_TABLE_DELAY_SECONDS,
            progress=print,
        )

    print_summary(summary)
    if summary.has_errors:
        print(
            "\n⚠️  Some errors occurred. Check that the service role key is used "
            "and that referenced auth users exist."
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
