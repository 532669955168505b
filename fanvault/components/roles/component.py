"""
Roles component.

Role grants are additive and idempotent: granting a held role is a no-op and
no operation here revokes a role.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fanvault.domain.entities import Identity, RoleAssignment, RoleType
from fanvault.domain.errors import AlreadyExists, NotFound
from fanvault.domain.policy import require_authenticated, require_role
from fanvault.ports.clock import ClockPort
from fanvault.ports.uow import UnitOfWorkFactory, UnitOfWorkPort

logger = logging.getLogger(__name__)

# Creators keep fan capabilities (subscribing, tipping, reporting)
CREATOR_ROLES: tuple[RoleType, ...] = ("creator", "fan")


def _grant(uow: UnitOfWorkPort, user_id: UUID, role: RoleType, clock: ClockPort) -> bool:
    """Grant inside an open unit of work. Returns False if already held."""
    if role in uow.roles.roles_of(user_id):
        return False
    try:
        uow.roles.grant(RoleAssignment(user_id=user_id, role=role, created_at=clock.now()))
    except AlreadyExists:
        logger.debug("Role %s for %s granted concurrently", role, user_id)
        return False
    return True


class RoleManager:
    def __init__(self, uow_factory: UnitOfWorkFactory, clock: ClockPort):
        self.uow_factory = uow_factory
        self.clock = clock

    def become_creator(self, actor: Identity | None) -> set[RoleType]:
        """Grant the actor the creator role (and fan, if missing). Idempotent."""
        actor = require_authenticated(actor)
        with self.uow_factory(write=True) as uow:
            if uow.profiles.get(actor.user_id) is None:
                raise NotFound("Profile not found")
            granted: list[RoleType] = []
            for role in CREATOR_ROLES:
                if _grant(uow, actor.user_id, role, self.clock):
                    granted.append(role)
            roles = uow.roles.roles_of(actor.user_id)

        if granted:
            logger.info("Profile %s became creator (granted %s)", actor.user_id, granted)
        else:
            logger.debug("Profile %s is already a creator", actor.user_id)
        return roles

    def grant_role(self, actor: Identity | None, user_id: UUID, role: RoleType) -> bool:
        """Admin-only grant. Returns True if the role was newly granted."""
        require_role(actor, "admin")
        with self.uow_factory(write=True) as uow:
            if uow.profiles.get(user_id) is None:
                raise NotFound("Profile not found")
            created = _grant(uow, user_id, role, self.clock)

        if created:
            logger.info("Granted role %s to %s", role, user_id)
        return created

    def roles_of(self, user_id: UUID) -> set[RoleType]:
        with self.uow_factory() as uow:
            return uow.roles.roles_of(user_id)

    def resolve_identity(self, user_id: UUID) -> Identity:
        """Identity carrying the roles currently stored for `user_id`."""
        return Identity(user_id=user_id, roles=frozenset(self.roles_of(user_id)))
