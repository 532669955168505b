from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from fanvault.api.auth_utils import decode_session_token, subject_of
from fanvault.app_shell.config import Settings
from fanvault.app_shell.context import ServiceContext
from fanvault.domain.entities import Identity
from fanvault.domain.errors import NotAuthenticated
from fanvault.domain.policy import require_authenticated
from fanvault.rules.loader import load_rules
from fanvault.rules.models import Rules


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Services ---
_context_instance: ServiceContext | None = None


def get_context() -> ServiceContext:
    """Get the service context singleton (SQLite-backed)."""
    global _context_instance
    if _context_instance is None:
        settings = get_settings()
        settings.ensure_dirs()
        _context_instance = ServiceContext.create(
            settings.db_path, str(settings.blob_dir), get_rules()
        )
    return _context_instance


# --- Auth ---
# Tokens come from the external auth service; there is no login route here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_token_subject(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UUID | None:
    """Profile id from a valid bearer token; None when no token was sent."""
    if not token:
        return None
    payload = decode_session_token(token, settings.secret_key)
    if payload is None:
        raise NotAuthenticated("Invalid or expired session token")
    user_id = subject_of(payload)
    if user_id is None:
        raise NotAuthenticated("Invalid token payload")
    return user_id


def get_optional_identity(
    user_id: Annotated[UUID | None, Depends(get_token_subject)],
    ctx: Annotated[ServiceContext, Depends(get_context)],
) -> Identity | None:
    if user_id is None:
        return None
    identity = ctx.roles.resolve_identity(user_id)
    if not identity.roles:
        # Token is valid but the profile was never registered
        raise NotAuthenticated("Profile not registered")
    return identity


def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    return require_authenticated(identity)


def get_registering_user(
    user_id: Annotated[UUID | None, Depends(get_token_subject)],
) -> UUID:
    if user_id is None:
        raise NotAuthenticated("This operation requires a signed-in user")
    return user_id


Context = Annotated[ServiceContext, Depends(get_context)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
