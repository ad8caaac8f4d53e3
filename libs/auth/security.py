"""Token issuing and password hashing."""

import hashlib
import hmac
from datetime import timedelta
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from libs.auth.models import AuthUser, Role, TokenPair
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import AuthenticationFailed

ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"
PASSWORD_RESET = "password_reset"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict[str, Any], secret: str, expires_in: timedelta) -> str:
    to_encode = {**claims, "exp": utc_now() + expires_in}
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def _claims(
    user_id: int, username: str, role: Role, store_id: Optional[int]
) -> dict[str, Any]:
    claims: dict[str, Any] = {"sub": str(user_id), "username": username, "role": role}
    if store_id is not None:
        claims["store_id"] = store_id
    return claims


def issue_token_pair(
    user_id: int, username: str, role: Role, store_id: Optional[int] = None
) -> TokenPair:
    """Issue an access/refresh pair. Admin access tokens are short lived."""
    settings = get_settings()
    access_minutes = (
        settings.ADMIN_ACCESS_TOKEN_EXPIRE_MINUTES
        if role == "admin"
        else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    claims = _claims(user_id, username, role, store_id)
    return TokenPair(
        access_token=_encode(
            {**claims, "type": ACCESS},
            settings.JWT_SECRET,
            timedelta(minutes=access_minutes),
        ),
        refresh_token=_encode(
            {**claims, "type": REFRESH},
            settings.JWT_REFRESH_SECRET,
            timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ),
    )


def password_fingerprint(password_hash: Optional[str]) -> str:
    settings = get_settings()
    digest = hmac.new(
        settings.JWT_SECRET.encode(), (password_hash or "").encode(), hashlib.sha256
    )
    return digest.hexdigest()[:16]


def issue_password_reset_token(
    member_id: int, username: str, password_hash: Optional[str] = None
) -> str:
    """
    Reset tokens carry a fingerprint of the current password hash, so they
    stop working once the password has changed.
    """
    settings = get_settings()
    return _encode(
        {
            "sub": str(member_id),
            "username": username,
            "pwd": password_fingerprint(password_hash),
            "type": PASSWORD_RESET,
        },
        settings.JWT_SECRET,
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """
    Verify signature, expiry and token type, returning the raw claims.

    Raises:
        AuthenticationFailed: for any invalid, expired or mistyped token
    """
    settings = get_settings()
    secret = settings.JWT_REFRESH_SECRET if expected_type == REFRESH else settings.JWT_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthenticationFailed(message="The token is invalid or expired")
    if payload.get("type") != expected_type:
        raise AuthenticationFailed(message="The token is invalid or expired")
    return payload


def user_from_claims(payload: dict[str, Any]) -> AuthUser:
    try:
        return AuthUser(**payload)
    except ValueError:
        raise AuthenticationFailed(message="The token is invalid or expired")


def check_password_reset_claims(
    payload: dict[str, Any], password_hash: Optional[str]
) -> None:
    """Reject a reset token issued before the password last changed."""
    fingerprint = payload.get("pwd")
    if not fingerprint or not hmac.compare_digest(
        fingerprint, password_fingerprint(password_hash)
    ):
        raise AuthenticationFailed(message="The token is invalid or expired")
