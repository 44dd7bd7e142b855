"""Backup snapshot file format.

A snapshot is a UTF-8 JSON document::

    {
      "generatedAt": "2025-11-26T06:07:03.772Z",
      "limit": null,
      "sourceDatabase": "https://<project>.supabase.co",
      "authenticated": true,
      "tables": {"orders": [...], "order_items": [...], ...}
    }

written to ``latest-backup-<timestamp>.json`` with colons in the timestamp
replaced by dashes.
"""

import re
from pathlib import Path
from typing import Any, Optional, Union

from libs.common.datetime_utils import filename_timestamp, iso_timestamp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

FILENAME_PREFIX = "latest-backup-"
_FILENAME_RE = re.compile(r"^latest-backup-(.+)\.json$")

Rows = list[dict[str, Any]]


class SnapshotError(Exception):
    """A snapshot file is missing or cannot be parsed."""


class Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_at: str = Field(default_factory=iso_timestamp, alias="generatedAt")
    limit: Optional[int] = None
    source_database: str = Field("", alias="sourceDatabase")
    authenticated: bool = False
    tables: dict[str, Rows] = Field(default_factory=dict)

    def rows(self, table: str) -> Rows:
        return self.tables.get(table) or []

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def backup_filename(moment=None) -> str:
    return f"{FILENAME_PREFIX}{filename_timestamp(moment)}.json"


def save_snapshot(snapshot: Snapshot, output_dir: Union[str, Path]) -> Path:
    """Write the snapshot into ``output_dir`` (created if needed)."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename()
    path.write_text(snapshot.to_json(), encoding="utf-8")
    return path


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SnapshotError(f"Backup file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise SnapshotError(f"Backup file {path} is not UTF-8: {exc}") from exc
    except OSError as exc:
        raise SnapshotError(f"Cannot read backup file {path}: {exc}") from exc
    try:
        return Snapshot.model_validate_json(content)
    except ValidationError as exc:
        raise SnapshotError(f"Backup file {path} is not a valid snapshot: {exc}") from exc


def latest_backup_file(directory: Union[str, Path]) -> Optional[Path]:
    """Newest ``latest-backup-*.json`` in ``directory`` by filename timestamp."""
    directory = Path(directory)
    if not directory.is_dir():
        return None
    candidates = []
    for path in directory.iterdir():
        match = _FILENAME_RE.match(path.name)
        if match:
            candidates.append((match.group(1), path))
    if not candidates:
        return None
    candidates.sort(key=lambda item: item[0], reverse=True)
    return candidates[0][1]
