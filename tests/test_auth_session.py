from __future__ import annotations

import pytest

from salesmaster.core.errors import ValidationError
from salesmaster.core.security import (
    InvalidToken,
    authenticate,
    create_user,
    hash_password,
    issue_session_token,
    verify_password,
    verify_session_token,
)
from salesmaster.core.session import AuthSession, FileTokenStorage, InMemoryTokenStorage


def test_session_load_save_clear_in_memory():
    storage = InMemoryTokenStorage()
    assert not AuthSession.load(storage).is_authenticated

    AuthSession(token="tok", username="jane").save(storage)
    loaded = AuthSession.load(storage)
    assert loaded == AuthSession(token="tok", username="jane")

    assert AuthSession.clear(storage) == AuthSession()
    assert not AuthSession.load(storage).is_authenticated


def test_file_storage_persists_across_instances(tmp_path):
    path = tmp_path / "profile" / "session.json"
    AuthSession(token="tok", username="sam").save(FileTokenStorage(path))

    assert AuthSession.load(FileTokenStorage(path)).username == "sam"
    AuthSession.clear(FileTokenStorage(path))
    assert AuthSession.load(FileTokenStorage(path)).token is None


def test_anonymous_session_cannot_be_saved():
    with pytest.raises(ValueError):
        AuthSession().save(InMemoryTokenStorage())


def test_password_hash_round_trip():
    encoded = hash_password("s3cret")
    assert verify_password("s3cret", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cret", "garbage")


def test_session_token_signature_and_expiry():
    token = issue_session_token("jane")
    assert verify_session_token(token)["sub"] == "jane"

    with pytest.raises(InvalidToken):
        verify_session_token(token[:-4] + "AAAA")
    with pytest.raises(InvalidToken):
        verify_session_token(issue_session_token("jane", ttl_seconds=-10))


def test_authenticate(session):
    create_user(session, "jane", "s3cret")

    auth = authenticate(session, "jane", "s3cret")
    assert auth is not None and auth.username == "jane"
    assert verify_session_token(auth.token)["sub"] == "jane"
    assert authenticate(session, "jane", "nope") is None
    assert authenticate(session, "nobody", "s3cret") is None

    with pytest.raises(ValidationError):
        authenticate(session, " ", "")
    with pytest.raises(ValidationError):
        create_user(session, "jane", "again")
