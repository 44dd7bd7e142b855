"""Recreate the admin auth identity from a snapshot's first profile.

Profiles, invoice settings and orders reference auth user ids. Creating the
auth user with the backed-up id before restoring lets those rows keep their
references.
"""

from typing import Any, NamedTuple, Optional, Protocol

from libs.common.logging import get_logger
from services.backup_service.snapshot import Snapshot

logger = get_logger(__name__)


class IdentityError(Exception):
    """The snapshot has no profile to create an identity from."""


class AuthAdmin(Protocol):
    async def list_auth_users(self) -> list[dict[str, Any]]: ...

    async def create_auth_user(self, payload: dict[str, Any]) -> dict[str, Any]: ...


class IdentityResult(NamedTuple):
    created: bool
    user_id: Optional[str]
    email: str


def identity_payload(profile: dict, email: str, password: str) -> dict[str, Any]:
    return {
        "id": profile.get("user_id"),
        "email": email,
        "password": password,
        "email_confirm": True,
        "user_metadata": {
            "full_name": profile.get("full_name") or "Admin",
            "from_backup": True,
        },
    }


async def ensure_admin_user_from_snapshot(
    auth: AuthAdmin, snapshot: Snapshot, email: str, password: str
) -> IdentityResult:
    """Create the auth user for the first backed-up profile unless the email exists."""
    profiles = snapshot.rows("profiles")
    if not profiles:
        raise IdentityError("No profiles found in backup")
    profile = profiles[0]

    existing = await auth.list_auth_users()
    for user in existing:
        if user.get("email") == email:
            logger.info("Auth user %s already exists (%s)", email, user.get("id"))
            return IdentityResult(created=False, user_id=user.get("id"), email=email)

    created = await auth.create_auth_user(identity_payload(profile, email, password))
    user = created.get("user", created) if isinstance(created, dict) else {}
    logger.info("Created auth user %s for profile %s", email, profile.get("user_id"))
    return IdentityResult(created=True, user_id=user.get("id"), email=user.get("email", email))
