from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from libs.auth.models import AuthUser
from libs.auth.security import ACCESS, decode_token, user_from_claims
from libs.common.errors import AuthenticationFailed, PermissionDenied

security = HTTPBearer(auto_error=False)


async def get_current_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]
) -> AuthUser:
    """
    Validate the bearer access token and return the authenticated user.
    """
    if token is None:
        raise AuthenticationFailed(message="No access token")
    return user_from_claims(decode_token(token.credentials, ACCESS))


async def get_optional_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]
) -> Optional[AuthUser]:
    """Like ``get_current_user`` but anonymous requests yield ``None``."""
    if token is None:
        return None
    return user_from_claims(decode_token(token.credentials, ACCESS))


async def require_member(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Buyer endpoints: any member account, including sellers."""
    if current_user.role not in ("member", "seller"):
        raise PermissionDenied(message="Member account required")
    return current_user


async def require_store(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Seller endpoints: a store session issued by the store login."""
    if current_user.role != "seller" or current_user.store_id is None:
        raise PermissionDenied(message="Store session required")
    return current_user


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    if not current_user.is_admin:
        raise PermissionDenied(message="Admin privileges required")
    return current_user
