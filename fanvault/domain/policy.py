from fanvault.domain.entities import Identity, RoleType
from fanvault.domain.errors import NotAuthenticated, PermissionDenied
from fanvault.rules.models import RbacRules


def require_authenticated(identity: Identity | None) -> Identity:
    if identity is None:
        raise NotAuthenticated("This operation requires a signed-in user")
    return identity


def require_role(identity: Identity | None, role: RoleType) -> Identity:
    """Single guard for role-gated operations. Returns the identity on success."""
    identity = require_authenticated(identity)
    if not identity.has_role(role):
        raise PermissionDenied(f"Role '{role}' required")
    return identity


def require_self_or_admin(identity: Identity | None, owner_id: object) -> Identity:
    identity = require_authenticated(identity)
    if identity.user_id != owner_id and not identity.has_role("admin"):
        raise PermissionDenied("Only the owner or an admin may do this")
    return identity


class PolicyEngine:
    def __init__(self, rbac: RbacRules):
        self.rbac = rbac

    def check_permission(self, identity: Identity | None, action: str) -> bool:
        """
        Check if the identity's roles allow the action.

        Order of precedence:
        1. Public permissions (no identity needed)
        2. Role-based grants, including "*" and scoped wildcards ("posts:*")
        """
        if action in self.rbac.public_permissions:
            return True

        if identity is None:
            return False

        for role in identity.roles:
            allowed_actions = self.rbac.roles.get(role, [])
            if "*" in allowed_actions or action in allowed_actions:
                return True
            if ":" in action:
                scope = action.split(":")[0]
                if f"{scope}:*" in allowed_actions:
                    return True

        return False

    def require(self, identity: Identity | None, action: str) -> Identity:
        identity = require_authenticated(identity)
        if not self.check_permission(identity, action):
            raise PermissionDenied(f"Not allowed to {action}")
        return identity
