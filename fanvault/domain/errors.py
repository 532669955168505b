"""
Typed failures raised by managers and adapters.

AlreadyExists is raised by storage adapters on uniqueness conflicts and is
always converted to a success outcome by the manager that owns the invariant.
Everything else propagates to the caller.
"""

from __future__ import annotations


class FanVaultError(Exception):
    """Base class for all domain failures."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class NotAuthenticated(FanVaultError):
    code = "not_authenticated"


class NotFound(FanVaultError):
    code = "not_found"


class AlreadyExists(FanVaultError):
    code = "already_exists"


class PaymentFailed(FanVaultError):
    code = "payment_failed"


class InvalidState(FanVaultError):
    code = "invalid_state"


class PermissionDenied(FanVaultError):
    code = "permission_denied"
