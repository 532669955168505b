"""
Messaging component.

Public API for direct conversations.
"""

from .component import MAX_MESSAGE_LENGTH, MessagingService

__all__ = ["MessagingService", "MAX_MESSAGE_LENGTH"]
