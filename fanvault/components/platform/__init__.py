"""
Platform component.

Public API for platform settings and report moderation.
"""

from .component import PlatformService, default_settings, effective_settings
from .models import CreateReportInput, UpdateSettingsInput

__all__ = [
    "PlatformService",
    "default_settings",
    "effective_settings",
    "CreateReportInput",
    "UpdateSettingsInput",
]
