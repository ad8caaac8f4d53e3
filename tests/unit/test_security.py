"""Unit tests for password hashing and token handling."""

import pytest
from libs.auth.security import (
    ACCESS,
    PASSWORD_RESET,
    REFRESH,
    check_password_reset_claims,
    decode_token,
    hash_password,
    issue_password_reset_token,
    issue_token_pair,
    user_from_claims,
    verify_password,
)
from libs.common.errors import AuthenticationFailed


@pytest.mark.unit
def test_password_hash_roundtrip():
    hashed = hash_password("hunter22")

    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


@pytest.mark.unit
def test_missing_hash_never_verifies():
    assert not verify_password("anything", None)
    assert not verify_password("anything", "")


@pytest.mark.unit
def test_store_session_token_carries_store_id():
    pair = issue_token_pair(7, "alice", "seller", store_id=3)

    user = user_from_claims(decode_token(pair.access_token, ACCESS))

    assert (user.user_id, user.username, user.role, user.store_id) == (7, "alice", "seller", 3)
    assert not user.is_admin


@pytest.mark.unit
def test_member_token_has_no_store():
    pair = issue_token_pair(8, "bob", "member")

    claims = decode_token(pair.refresh_token, REFRESH)

    assert "store_id" not in claims
    assert user_from_claims(claims).store_id is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "token_kind, expected_type",
    [("access", REFRESH), ("refresh", ACCESS), ("reset", ACCESS)],
)
def test_token_of_wrong_type_is_rejected(token_kind, expected_type):
    pair = issue_token_pair(1, "admin", "admin")
    tokens = {
        "access": pair.access_token,
        "refresh": pair.refresh_token,
        "reset": issue_password_reset_token(1, "admin"),
    }

    with pytest.raises(AuthenticationFailed):
        decode_token(tokens[token_kind], expected_type)


@pytest.mark.unit
def test_password_reset_token_decodes_as_reset():
    claims = decode_token(issue_password_reset_token(5, "carol"), PASSWORD_RESET)

    assert claims["sub"] == "5"


@pytest.mark.unit
def test_reset_token_stops_working_after_password_change():
    old_hash = hash_password("old-pass-1")
    claims = decode_token(issue_password_reset_token(5, "carol", old_hash), PASSWORD_RESET)

    check_password_reset_claims(claims, old_hash)
    with pytest.raises(AuthenticationFailed):
        check_password_reset_claims(claims, hash_password("new-pass-1"))


@pytest.mark.unit
def test_garbage_token_is_rejected():
    with pytest.raises(AuthenticationFailed) as exc:
        decode_token("not-a-jwt", ACCESS)
    assert exc.value.code == "UNAUTHORIZED"


@pytest.mark.unit
def test_claims_with_unknown_role_are_rejected():
    with pytest.raises(AuthenticationFailed):
        user_from_claims({"sub": "1", "username": "x", "role": "root"})
