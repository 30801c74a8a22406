from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from datetime import datetime, timezone
from hashlib import sha256
from typing import Literal

from fastapi import Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from salesmaster.core.config import get_settings
from salesmaster.core.errors import ValidationError
from salesmaster.core.session import AuthSession
from salesmaster.persistence.models import UserModel

ActorType = Literal["service", "user"]

PBKDF2_ITERATIONS = 260_000


class Actor(BaseModel):
    type: ActorType
    id: str


class InvalidToken(Exception):
    pass


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        _, iterations, salt, expected = encoded.split("$", 3)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def _token_key() -> bytes:
    return get_settings().token_signing_secret.encode("utf-8")


def issue_session_token(username: str, ttl_seconds: int | None = None) -> str:
    now = int(time.time())
    ttl = ttl_seconds if ttl_seconds is not None else get_settings().session_ttl_seconds
    payload = {"sub": username, "iat": now, "exp": now + ttl, "jti": secrets.token_hex(8)}
    body = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    mac = hmac.new(_token_key(), body, sha256).digest()
    return base64.urlsafe_b64encode(body + mac).decode("ascii")


def verify_session_token(token: str) -> dict:
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as exc:
        raise InvalidToken("invalid token encoding") from exc

    if len(raw) <= 32:
        raise InvalidToken("invalid token body")

    body, mac = raw[:-32], raw[-32:]
    expected = hmac.new(_token_key(), body, sha256).digest()
    if not hmac.compare_digest(mac, expected):
        raise InvalidToken("token signature mismatch")

    payload = json.loads(body.decode("utf-8"))
    if int(time.time()) > int(payload.get("exp", 0)):
        raise InvalidToken("token expired")
    return payload


def create_user(session: Session, username: str, password: str) -> None:
    username = username.strip()
    if not username or not password.strip():
        raise ValidationError("username and password are required")
    if session.get(UserModel, username) is not None:
        raise ValidationError(f"user already exists: {username}")
    session.add(
        UserModel(
            username=username,
            password_hash=hash_password(password),
            created_at=datetime.now(timezone.utc),
        )
    )
    session.flush()


def authenticate(session: Session, username: str, password: str) -> AuthSession | None:
    if not username.strip() or not password.strip():
        raise ValidationError("please enter a username and password")
    user = session.get(UserModel, username.strip())
    if user is None or not verify_password(password, user.password_hash):
        return None
    return AuthSession(token=issue_session_token(user.username), username=user.username)


def _extract_credential(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _auth_error("invalid authorization header")
        return token.strip()
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return None


def get_actor(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> Actor:
    settings = get_settings()
    if not settings.auth_enabled:
        return Actor(type="service", id="anonymous")

    credential = _extract_credential(authorization, x_api_key)
    if not credential:
        raise _auth_error("missing credentials")

    if hmac.compare_digest(credential.encode("utf-8"), settings.api_key.encode("utf-8")):
        return Actor(type="service", id="api-key")

    try:
        payload = verify_session_token(credential)
    except InvalidToken as exc:
        raise _auth_error(str(exc)) from exc
    return Actor(type="user", id=str(payload["sub"]))
