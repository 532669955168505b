"""
Session tokens.

Tokens are issued by the external auth service; this module only needs to
verify them. `create_session_token` exists for that service's local stand-in
and for tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

from jose import JWTError, jwt

ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_session_token(
    user_id: UUID,
    secret_key: str,
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
) -> str:
    """
    Create a signed session token whose `sub` is the profile id.

    Args:
        user_id: Profile id
        secret_key: HS256 signing key
        expires_delta: Optional custom lifetime
        now_utc: Current UTC time (for testing/determinism)
    """
    current_time = now_utc if now_utc is not None else datetime.now(UTC)
    expire = current_time + (expires_delta or timedelta(minutes=SESSION_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user_id), "iat": current_time, "exp": expire}
    encoded_jwt: str = jwt.encode(claims, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def decode_session_token(token: str, secret_key: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        return cast(dict[str, Any], payload)
    except JWTError:
        return None


def subject_of(payload: dict[str, Any]) -> UUID | None:
    sub = payload.get("sub")
    if not isinstance(sub, str):
        return None
    try:
        return UUID(sub)
    except ValueError:
        return None
