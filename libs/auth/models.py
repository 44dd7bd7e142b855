from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Authenticated user decoded from a Supabase access token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"

    def is_admin(self, admin_email: str) -> bool:
        if self.role == "service_role":
            return True
        return bool(self.email) and self.email.lower() == admin_email.lower()
