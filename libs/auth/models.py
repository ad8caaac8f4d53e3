from typing import Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["member", "seller", "admin"]


class AuthUser(BaseModel):
    """
    Identity carried by a VendorVault access token.

    ``user_id`` is a member id for buyers and sellers and an admin-user id
    for administrators; ``store_id`` is only present on store sessions.
    """

    user_id: int = Field(..., alias="sub")
    username: str
    role: Role = "member"
    store_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
