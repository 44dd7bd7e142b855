"""Unit tests for recreating the admin identity from a backup."""

import pytest
from services.backup_service.identity import (
    IdentityError,
    ensure_admin_user_from_snapshot,
    identity_payload,
)
from services.backup_service.snapshot import Snapshot


class FakeAuthAdmin:
    def __init__(self, users=None):
        self.users = list(users or [])
        self.created = []

    async def list_auth_users(self):
        return list(self.users)

    async def create_auth_user(self, payload):
        self.created.append(payload)
        user = {"id": payload["id"], "email": payload["email"]}
        self.users.append(user)
        return user


def _snapshot(profiles) -> Snapshot:
    return Snapshot(tables={"profiles": profiles})


@pytest.mark.unit
def test_identity_payload_keeps_backed_up_user_id():
    payload = identity_payload({"user_id": "u-1", "full_name": None}, "a@b.com", "pw")
    assert payload["id"] == "u-1"
    assert payload["email_confirm"] is True
    assert payload["user_metadata"] == {"full_name": "Admin", "from_backup": True}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_creates_user_from_first_profile():
    auth = FakeAuthAdmin()
    snapshot = _snapshot(
        [
            {"user_id": "u-1", "full_name": "Meera"},
            {"user_id": "u-2", "full_name": "Other"},
        ]
    )

    result = await ensure_admin_user_from_snapshot(auth, snapshot, "owner@bakery.in", "pw")

    assert result.created is True
    assert result.user_id == "u-1"
    assert auth.created[0]["user_metadata"]["full_name"] == "Meera"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_existing_email_is_not_recreated():
    auth = FakeAuthAdmin(users=[{"id": "live-id", "email": "owner@bakery.in"}])
    result = await ensure_admin_user_from_snapshot(
        auth, _snapshot([{"user_id": "u-1"}]), "owner@bakery.in", "pw"
    )
    assert result.created is False
    assert result.user_id == "live-id"
    assert auth.created == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_snapshot_without_profiles_raises():
    with pytest.raises(IdentityError):
        await ensure_admin_user_from_snapshot(FakeAuthAdmin(), _snapshot([]), "a@b.com", "pw")
