"""
Notifications component.

Public API for reading notifications and wiring the event fan-out.
"""

from .component import NotificationFanout, NotificationService

__all__ = ["NotificationFanout", "NotificationService"]
