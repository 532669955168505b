"""
Profiles component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from fanvault.adapters.clock import FrozenClock
from fanvault.adapters.fs.blobstore import LocalBlobStore
from fanvault.adapters.memory import InMemoryUnitOfWorkFactory
from fanvault.components.profiles import (
    AVATAR_BUCKET,
    ProfileService,
    UpdateProfileInput,
)
from fanvault.components.roles import RoleManager
from fanvault.domain.entities import Identity, PlatformSettings
from fanvault.domain.errors import InvalidState, NotFound, PermissionDenied
from fanvault.rules.models import PlatformRules

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def uow_factory() -> InMemoryUnitOfWorkFactory:
    return InMemoryUnitOfWorkFactory()


@pytest.fixture
def blobs(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def service(uow_factory, blobs) -> ProfileService:
    return ProfileService(
        uow_factory,
        FrozenClock(NOW),
        blobs,
        PlatformRules(
            platform_fee_percentage=Decimal("20"),
            min_subscription_price=Decimal("0"),
            max_subscription_price=Decimal("999.99"),
        ),
    )


@pytest.fixture
def roles(uow_factory) -> RoleManager:
    return RoleManager(uow_factory, FrozenClock(NOW))


def _identity(user_id, *roles: str) -> Identity:
    return Identity(user_id=user_id, roles=frozenset(roles))


class TestRegister:
    def test_creates_profile_with_fan_role(self, service, roles) -> None:
        user_id = uuid4()

        profile = service.register(user_id, "alice")

        assert profile.id == user_id
        assert profile.username == "alice"
        assert profile.display_name == "alice"
        assert profile.subscription_price == Decimal("0")
        assert roles.roles_of(user_id) == {"fan"}

    def test_idempotent(self, service) -> None:
        user_id = uuid4()
        first = service.register(user_id, "alice")
        again = service.register(user_id, "someone-else")
        assert again == first

    def test_username_taken(self, service) -> None:
        service.register(uuid4(), "alice")
        with pytest.raises(InvalidState):
            service.register(uuid4(), "alice")


class TestLookup:
    def test_get_and_by_username(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        assert service.get_profile(profile.id) == profile
        assert service.get_by_username("alice") == profile

    def test_not_found(self, service) -> None:
        with pytest.raises(NotFound):
            service.get_profile(uuid4())
        with pytest.raises(NotFound):
            service.get_by_username("nobody")


class TestUpdateProfile:
    def test_owner_updates_fields(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        actor = _identity(profile.id, "fan")

        updated = service.update_profile(
            actor, profile.id, UpdateProfileInput(display_name="Alice", bio="hi")
        )

        assert updated.display_name == "Alice"
        assert updated.bio == "hi"
        assert updated.username == "alice"
        assert service.get_profile(profile.id) == updated

    def test_only_owner(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        other = _identity(uuid4(), "fan")
        with pytest.raises(PermissionDenied):
            service.update_profile(other, profile.id, UpdateProfileInput(bio="x"))

    def test_username_clash(self, service) -> None:
        service.register(uuid4(), "alice")
        bob = service.register(uuid4(), "bob")
        with pytest.raises(InvalidState):
            service.update_profile(
                _identity(bob.id, "fan"), bob.id, UpdateProfileInput(username="alice")
            )

    def test_negative_price_rejected(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        with pytest.raises(InvalidState):
            service.update_profile(
                _identity(profile.id, "fan"),
                profile.id,
                UpdateProfileInput(subscription_price=Decimal("-1")),
            )

    def test_creator_price_within_platform_bounds(self, service, roles, uow_factory) -> None:
        profile = service.register(uuid4(), "alice")
        actor = _identity(profile.id, "fan")
        roles.become_creator(actor)
        with uow_factory(write=True) as uow:
            uow.settings.save(
                PlatformSettings(
                    platform_fee_percentage=Decimal("20"),
                    min_subscription_price=Decimal("4.99"),
                    max_subscription_price=Decimal("49.99"),
                )
            )

        ok = service.update_profile(
            actor, profile.id, UpdateProfileInput(subscription_price=Decimal("9.99"))
        )
        assert ok.subscription_price == Decimal("9.99")

        for price in ("1.00", "50.00"):
            with pytest.raises(InvalidState):
                service.update_profile(
                    actor, profile.id, UpdateProfileInput(subscription_price=Decimal(price))
                )
        assert service.get_profile(profile.id).subscription_price == Decimal("9.99")

    def test_fan_price_also_within_bounds(self, service, roles) -> None:
        profile = service.register(uuid4(), "alice")
        actor = _identity(profile.id, "fan")

        with pytest.raises(InvalidState):
            service.update_profile(
                actor, profile.id, UpdateProfileInput(subscription_price=Decimal("5000"))
            )
        roles.become_creator(actor)

        assert service.get_profile(profile.id).subscription_price == Decimal("0")


class TestImages:
    def test_upload_avatar(self, service, blobs) -> None:
        profile = service.register(uuid4(), "alice")
        actor = _identity(profile.id, "fan")

        updated = service.upload_avatar(actor, "me.PNG", b"\x89PNG")

        expected_path = f"{profile.id}/{int(NOW.timestamp() * 1000)}.png"
        assert updated.avatar_url == f"/media/{AVATAR_BUCKET}/{expected_path}"
        assert blobs.read(AVATAR_BUCKET, expected_path) == b"\x89PNG"

    def test_upload_banner(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        updated = service.upload_banner(_identity(profile.id, "fan"), "b.jpg", b"data")
        assert updated.banner_url is not None
        assert updated.banner_url.startswith("/media/banners/")

    def test_empty_upload_rejected(self, service) -> None:
        profile = service.register(uuid4(), "alice")
        with pytest.raises(InvalidState):
            service.upload_avatar(_identity(profile.id, "fan"), "a.png", b"")


class TestDiscover:
    def test_only_creators_are_listed(self, service, roles) -> None:
        alice = service.register(uuid4(), "alice")
        service.register(uuid4(), "alfred")
        roles.become_creator(_identity(alice.id, "fan"))

        found = service.discover("al")

        assert [p.username for p in found] == ["alice"]

    def test_empty_term_lists_all_creators(self, service, roles) -> None:
        alice = service.register(uuid4(), "alice")
        roles.become_creator(_identity(alice.id, "fan"))
        assert len(service.discover()) == 1
