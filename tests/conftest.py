import os
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fanvault.adapters.clock import FrozenClock
from fanvault.adapters.event_bus import RecordingEventBus
from fanvault.adapters.payment_stub import PaymentStubAdapter
from fanvault.api.auth_utils import create_session_token
from fanvault.api.deps import get_context, get_settings
from fanvault.api.main import create_app
from fanvault.app_shell.config import Settings
from fanvault.app_shell.context import ServiceContext
from fanvault.domain.entities import Identity, Profile, RoleAssignment, RoleType
from fanvault.rules.loader import load_rules
from fanvault.rules.models import Rules

ROOT = Path(__file__).resolve().parents[1]
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
TEST_SECRET = "test-secret"


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def payments() -> PaymentStubAdapter:
    return PaymentStubAdapter()


@pytest.fixture
def bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def db_path(tmp_path) -> str:
    return os.path.join(str(tmp_path), "fanvault.db")


@pytest.fixture
def ctx(db_path, tmp_path, rules, clock, payments, bus) -> ServiceContext:
    """
    Full ServiceContext backed by a freshly migrated SQLite file and a
    temporary blob directory.
    """
    return ServiceContext.create(
        db_path,
        str(tmp_path / "blobs"),
        rules,
        clock=clock,
        payments=payments,
        events=bus,
    )


@pytest.fixture
def mem_ctx(tmp_path, rules, clock, payments, bus) -> ServiceContext:
    return ServiceContext.create_in_memory(
        str(tmp_path / "blobs"),
        rules,
        clock=clock,
        payments=payments,
        events=bus,
    )


MakeUser = Callable[..., Identity]


def _seed_user(
    context: ServiceContext,
    *roles: RoleType,
    username: str | None = None,
    price: str = "0",
) -> Identity:
    profile = Profile(username=username, subscription_price=Decimal(price))
    with context.uow_factory(write=True) as uow:
        uow.profiles.save(profile)
        for role in roles:
            uow.roles.grant(RoleAssignment(user_id=profile.id, role=role))
    return Identity(user_id=profile.id, roles=frozenset(roles))


@pytest.fixture
def make_user(ctx) -> MakeUser:
    """Seed a profile with roles directly through the store."""

    def _make(*roles: RoleType, username: str | None = None, price: str = "0") -> Identity:
        return _seed_user(ctx, *roles, username=username, price=price)

    return _make


@pytest.fixture
def make_mem_user(mem_ctx) -> MakeUser:
    def _make(*roles: RoleType, username: str | None = None, price: str = "0") -> Identity:
        return _seed_user(mem_ctx, *roles, username=username, price=price)

    return _make


# --- API ---


@pytest.fixture
def client(ctx) -> Iterator[TestClient]:
    app = create_app(with_lifespan=False)
    app.dependency_overrides[get_context] = lambda: ctx
    app.dependency_overrides[get_settings] = lambda: Settings(
        {"FANVAULT_SECRET_KEY": TEST_SECRET}
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


AuthHeaders = Callable[..., dict[str, str]]


@pytest.fixture
def auth() -> AuthHeaders:
    """Bearer headers for a profile id, signed with the test secret."""

    def _headers(user_id) -> dict[str, str]:
        token = create_session_token(user_id, TEST_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
