"""
Roles component.

Public API for role grants and identity resolution.
"""

from .component import RoleManager

__all__ = ["RoleManager"]
