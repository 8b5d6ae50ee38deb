from datetime import timedelta

import pytest
from jose import jwt

from deckly.auth import issue_session_token, resolve_identity, verify_session_token
from deckly.errors import AuthenticationError, PermissionDeniedError
from deckly.models import User, UserRole
from deckly.utils.timezone import now_utc

SECRET = 'unit-test-secret'


def test_token_round_trip_lowercases_email():
    token = issue_session_token('Admin@Example.com', SECRET)
    assert verify_session_token(token, SECRET) == 'admin@example.com'


def test_token_is_hs256_jwt():
    token = issue_session_token('dj@example.com', SECRET)
    assert jwt.get_unverified_header(token)['alg'] == 'HS256'
    assert jwt.get_unverified_claims(token)['sub'] == 'dj@example.com'


def test_token_signed_with_other_secret_is_rejected():
    forged = issue_session_token('admin@example.com', 'other-secret')
    with pytest.raises(AuthenticationError):
        verify_session_token(forged, SECRET)


def test_tampered_claims_are_rejected():
    header, _, signature = issue_session_token('dj@example.com', SECRET).split('.')
    other_claims = issue_session_token('admin@example.com', SECRET).split('.')[1]
    with pytest.raises(AuthenticationError):
        verify_session_token(f"{header}.{other_claims}.{signature}", SECRET)


@pytest.mark.parametrize("token", ["", "garbage", "abc.def", "a.b.c"])
def test_malformed_tokens(token):
    with pytest.raises(AuthenticationError):
        verify_session_token(token, SECRET)


def test_expired_token():
    token = issue_session_token('dj@example.com', SECRET, ttl_seconds=60,
                                now=now_utc() - timedelta(minutes=2))
    with pytest.raises(AuthenticationError, match="Session expired"):
        verify_session_token(token, SECRET)


def test_unconfigured_secret():
    with pytest.raises(AuthenticationError):
        verify_session_token(issue_session_token('dj@example.com', SECRET), '')


def test_resolve_identity(database, make_dj):
    dj_id = make_dj()
    with database.session() as session:
        session.add(User(email='dj1@example.com', role=UserRole.DJ, dj_id=dj_id))

    identity = resolve_identity(database, issue_session_token('dj1@example.com', SECRET), SECRET)
    assert identity.role == UserRole.DJ
    assert identity.require_dj() == dj_id
    with pytest.raises(PermissionDeniedError):
        identity.require_admin()


def test_unknown_user_is_not_authenticated(database):
    with pytest.raises(AuthenticationError):
        resolve_identity(database, issue_session_token('nobody@example.com', SECRET), SECRET)
