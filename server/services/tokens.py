"""
Session tokens: HS256 JWTs carrying user_id, username, jti and exp.

The jti is what logout revokes. Tokens issued without one still validate,
they just cannot be revoked individually.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from errors import AuthError

ALGORITHM = "HS256"


@dataclass
class TokenClaims:
    user_id: int
    username: str
    jti: str
    expires_at: datetime  # naive UTC


def generate_jti() -> str:
    return secrets.token_hex(16)


def generate_jwt(user_id: int, username: str, secret: str, expires_in: timedelta) -> str:
    expires_at = datetime.now(timezone.utc) + expires_in
    payload = {
        "user_id": user_id,
        "username": username,
        "jti": generate_jti(),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def validate_jwt(token: str, secret: str) -> TokenClaims:
    try:
        header = jwt.get_unverified_header(token)
        if header.get("alg") != ALGORITHM:
            raise AuthError(f"unexpected signing method: {header.get('alg')}")
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("token expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"invalid token: {e}")

    user_id = payload.get("user_id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthError("invalid user_id in token")

    return TokenClaims(
        user_id=user_id,
        username=str(payload.get("username") or ""),
        jti=str(payload.get("jti") or ""),
        expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc).replace(tzinfo=None),
    )
